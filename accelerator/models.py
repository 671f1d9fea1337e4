from pydantic import BaseModel, Field, field_validator


class ServerOptions(BaseModel):
    server: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    height_check_interval_ms: int = Field(gt=0)
    proxy_timeout: float = Field(default=30.0, gt=0)

    @field_validator("server")
    @classmethod
    def normalize_server(cls, value: str) -> str:
        """Assume plain http when the upstream is given as host:port."""
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("server must not be empty")
        if "://" not in value:
            value = f"http://{value}"
        return value
