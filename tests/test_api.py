"""Tests for the FastAPI application."""

import pytest
from fastapi.testclient import TestClient

from py_levelgen.api.main import app
from py_levelgen.core.level_file import parse_level
from py_levelgen.db.connection import db
from py_levelgen.db.models import GenerationJob

LEVEL_REQUEST = {
    "x_cells": 4,
    "y_cells": 4,
    "num_shapes": 4,
    "min_shape_size": 4,
    "max_shape_size": 4,
    "seed": "api",
    "randomize_iterations": 10,
    "relax_shape_bounds": False,
}

INFEASIBLE_REQUEST = dict(LEVEL_REQUEST, x_cells=3, y_cells=3, num_shapes=5, min_shape_size=2, max_shape_size=9)


@pytest.fixture
def client(tmp_path):
    db.initialize(f"sqlite:///{tmp_path / 'levels.db'}")
    return TestClient(app)


class TestServiceEndpoints:
    """Test root and health endpoints."""

    def test_root(self, client):
        """Test the root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        """Test the health check reaches the database."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}


class TestGenerateLevel:
    """Test synchronous level generation."""

    def test_generate(self, client):
        """Test a level is generated, stored and returned."""
        response = client.post("/levels/generate", json=dict(LEVEL_REQUEST, name="First"))
        assert response.status_code == 200

        level = response.json()
        assert level["name"] == "First"
        assert level["seed"] == "api"
        assert level["grid_shape"] == 0
        assert len(level["grid"]) == 4
        assert sorted(value for row in level["grid"] for value in row) == [2] * 4 + [3] * 4 + [4] * 4 + [5] * 4
        assert parse_level(level["level_data"]).grid.tolist() == level["grid"]
        assert level["valid"] is True

        stored = client.get(f"/levels/{level['id']}")
        assert stored.status_code == 200
        assert stored.json()["grid"] == level["grid"]

    def test_grid_shape_by_name(self, client):
        """Test the grid shape can be given by name."""
        request = dict(LEVEL_REQUEST, grid_shape="triangle", min_shape_size=2, max_shape_size=8)
        response = client.post("/levels/generate", json=request)

        assert response.status_code == 200
        assert response.json()["grid_shape"] == 1

    def test_infeasible(self, client):
        """Test an infeasible board is rejected with its failure reason."""
        response = client.post("/levels/generate", json=INFEASIBLE_REQUEST)

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["failure_reason"] == "infeasible_constraints"
        assert detail["error"].startswith("Could not fill board with shapes.")

    def test_invalid_parameters(self, client):
        """Test invalid parameters are rejected."""
        assert client.post("/levels/generate", json=dict(LEVEL_REQUEST, x_cells=0)).status_code == 422
        assert client.post("/levels/generate", json=dict(LEVEL_REQUEST, x_cells=30)).status_code == 422
        assert client.post("/levels/generate", json=dict(LEVEL_REQUEST, min_shape_size=5)).status_code == 422

    def test_list_levels(self, client):
        """Test generated levels are listed."""
        assert client.get("/levels").json() == []

        client.post("/levels/generate", json=LEVEL_REQUEST)
        levels = client.get("/levels").json()

        assert len(levels) == 1
        assert levels[0]["name"] == "Level api"
        assert levels[0]["num_shapes"] == 4

    def test_cell_type_mismatch(self, client):
        """Test a cell type map of the wrong size is rejected."""
        response = client.post("/levels/generate", json=dict(LEVEL_REQUEST, cell_types=[[-1, -1]]))

        assert response.status_code == 422
        assert "Cell type map" in response.json()["detail"]

    def test_level_not_found(self, client):
        """Test unknown levels return 404."""
        assert client.get("/levels/missing").status_code == 404


class TestJobs:
    """Test background generation jobs."""

    def test_job_completes(self, client):
        """Test a job runs in the background and links its level."""
        response = client.post("/jobs", json=LEVEL_REQUEST)
        assert response.status_code == 200
        job_id = response.json()["job_id"]

        job = client.get(f"/jobs/{job_id}").json()
        assert job["status"] == "completed"
        assert job["progress_percent"] == 100

        level = client.get(f"/levels/{job['level_id']}").json()
        assert level["seed"] == "api"

    def test_job_fails(self, client):
        """Test a failed job records the error and failure reason."""
        job_id = client.post("/jobs", json=INFEASIBLE_REQUEST).json()["job_id"]

        job = client.get(f"/jobs/{job_id}").json()
        assert job["status"] == "failed"
        assert job["failure_reason"] == "infeasible_constraints"
        assert job["level_id"] is None

    def test_job_seed_assigned(self, client):
        """Test jobs without a seed get one before they start."""
        job_id = client.post("/jobs", json=dict(LEVEL_REQUEST, seed=None)).json()["job_id"]

        level_id = client.get(f"/jobs/{job_id}").json()["level_id"]
        assert client.get(f"/levels/{level_id}").json()["seed"]

    def test_invalid_job(self, client):
        """Test invalid boards are rejected before a job is created."""
        assert client.post("/jobs", json=dict(LEVEL_REQUEST, y_cells=30)).status_code == 422

    def test_cell_type_mismatch(self, client):
        """Test a cell type map of the wrong size never creates a job."""
        response = client.post("/jobs", json=dict(LEVEL_REQUEST, cell_types=[[-1, -1]]))

        assert response.status_code == 422
        with db.get_session() as session:
            assert session.query(GenerationJob).count() == 0

    def test_job_not_found(self, client):
        """Test unknown jobs return 404."""
        assert client.get("/jobs/missing").status_code == 404
        assert client.delete("/jobs/missing").status_code == 404

    def test_cancel_finished_job(self, client):
        """Test finished jobs cannot be cancelled."""
        job_id = client.post("/jobs", json=LEVEL_REQUEST).json()["job_id"]

        response = client.delete(f"/jobs/{job_id}")
        assert response.status_code == 409
