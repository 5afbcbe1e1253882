from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # Database Configuration
    database_url: str = Field(default="sqlite:///./levelgen.db", description="SQLAlchemy database URL")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (console or json)")

    # Generation Configuration
    max_grid_cells: int = Field(default=15, description="Max allowed cells per board side")
    generation_timeout: int = Field(default=300, description="Generation timeout in seconds")
    randomize_iterations: int = Field(default=1000, description="Random grow moves after packing")
    relax_shape_bounds: bool = Field(default=True, description="Loosen infeasible shape size bounds")

    # Export Configuration
    output_dir: str = Field(default="./levels", description="Directory for exported level files")

    class Config:
        env_prefix = "LEVELGEN_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
