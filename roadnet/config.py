# roadnet/config.py
import os

from pydantic import BaseModel, Field

ENV_PREFIX = "ROADNET_"


class RoadnetConfig(BaseModel):
    data_dir: str = "data"
    edges_file: str = "edges.geojson"
    nodes_file: str = "nodes.geojson"
    default_weight: str = Field(default="length", min_length=1)
    log_level: str = "INFO"

    @property
    def edges_path(self) -> str:
        return os.path.join(self.data_dir, self.edges_file)

    @property
    def nodes_path(self) -> str:
        return os.path.join(self.data_dir, self.nodes_file)

    @classmethod
    def from_env(cls, environ=None) -> "RoadnetConfig":
        """Build a config, overriding fields from ROADNET_* environment variables."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            key = ENV_PREFIX + name.upper()
            if key in environ:
                overrides[name] = environ[key]
        return cls(**overrides)
