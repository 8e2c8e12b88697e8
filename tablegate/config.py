from dataclasses import dataclass


@dataclass
class DbConfig:
    db: str
    host: str = "localhost"
    port: int = 28015
    user: str = "admin"
    password: str = ""
    timeout: int = 20

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not self.db:
            raise ValueError("db must be a non-empty database name")
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in 1..65535, got {self.port}")
        if self.timeout <= 0:
            raise ValueError(
                "timeout must be > 0; the driver treats it as the connect deadline in seconds"
            )
