"""Configuration management for listing-desk."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from listing_desk.exceptions import ConfigurationError


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration for the hosted backend."""

    host: str = "localhost"
    port: int = 5432
    database: str = "postgres"
    user: str = "postgres"
    password: str = "postgres"
    properties_table: str = "properties"
    profiles_table: str = "profiles"
    transactions_table: str = "transaction_history"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class KafkaConfig:
    """Kafka producer configuration for action events."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    linger_ms: int = 5
    retries: int = 3
    topic_prefix: str = "listing-desk"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "linger.ms": self.linger_ms,
            "retries": self.retries,
        }


@dataclass
class NotificationConfig:
    """Transient notification settings."""

    duration_seconds: float = 5.0


@dataclass
class CreditPolicy:
    """Credit rules applied by the action orchestrator.

    ``create_deducts_credit`` charges one listing credit when a new listing
    is created. ``compensate_partial`` reverses a record mutation whose
    paired credit decrement failed.
    """

    create_deducts_credit: bool = True
    compensate_partial: bool = True


@dataclass
class OutputConfig:
    """Local event output configuration."""

    events_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class DeskConfig:
    """Main configuration for listing-desk."""

    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    credits: CreditPolicy = field(default_factory=CreditPolicy)
    output: OutputConfig = field(default_factory=OutputConfig)
    event_sink: str = "console"
    log_level: str = "INFO"
    log_format: str = "standard"

    SINK_TYPES = ("none", "console", "json", "kafka")

    @classmethod
    def from_env(cls) -> "DeskConfig":
        """Create config from environment variables."""
        import os

        def _flag(name: str, default: str) -> bool:
            return os.getenv(name, default).lower() == "true"

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "postgres"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("TOPIC_PREFIX", "listing-desk"),
        )

        try:
            duration = float(os.getenv("NOTIFICATION_SECONDS", "5"))
        except ValueError as e:
            raise ConfigurationError(f"NOTIFICATION_SECONDS must be a number: {e}") from e
        if duration < 0:
            raise ConfigurationError("NOTIFICATION_SECONDS must not be negative")

        event_sink = os.getenv("EVENT_SINK", "console").lower()
        if event_sink not in cls.SINK_TYPES:
            raise ConfigurationError(
                f"EVENT_SINK must be one of {', '.join(cls.SINK_TYPES)}, got {event_sink!r}"
            )

        return cls(
            postgres=postgres,
            kafka=kafka,
            notifications=NotificationConfig(duration_seconds=duration),
            credits=CreditPolicy(
                create_deducts_credit=_flag("CREATE_DEDUCTS_CREDIT", "true"),
                compensate_partial=_flag("COMPENSATE_PARTIAL", "true"),
            ),
            output=OutputConfig(
                events_dir=Path(os.getenv("OUTPUT_DIR", "output")),
                pretty_json=_flag("PRETTY_JSON", "false"),
            ),
            event_sink=event_sink,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
