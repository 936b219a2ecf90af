"""Output sinks for listing records and action events."""

from listing_desk.sinks.console import ConsoleSink
from listing_desk.sinks.json_file import JsonFileSink

__all__ = ["ConsoleSink", "JsonFileSink", "build_sink"]


def build_sink(config):
    """Create the event sink named by ``config.event_sink`` (a ``DeskConfig``).

    Returns ``None`` for ``"none"``. The Kafka sink is imported lazily so
    confluent-kafka is only loaded when it is used.
    """
    if config.event_sink == "none":
        return None
    if config.event_sink == "json":
        return JsonFileSink(config.output.events_dir, pretty=config.output.pretty_json)
    if config.event_sink == "kafka":
        from listing_desk.sinks.kafka import KafkaSink

        return KafkaSink(config.kafka)
    return ConsoleSink(pretty=False)
