#!/usr/bin/env python3
"""Generate sample property listings and write them to a sink.

Produces listings for a handful of agents so the dashboards and the
consumer browse view have realistic data to work with.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from listing_desk.config import DeskConfig, KafkaConfig
from listing_desk.generators import ListingGenerator
from listing_desk.logging import setup_logging
from listing_desk.sinks import ConsoleSink, JsonFileSink


def build_batch_sink(name: str, output_dir: Path, bootstrap_servers: str):
    """Create the sink that receives the generated listings."""
    if name == "json":
        return JsonFileSink(output_dir, pretty=True)
    if name == "kafka":
        from listing_desk.sinks.kafka import KafkaSink

        return KafkaSink(KafkaConfig(bootstrap_servers=bootstrap_servers))
    return ConsoleSink(pretty=True, max_records=5)


def main() -> None:
    """Generate listings for ``--agents`` agents."""
    config = DeskConfig.from_env()

    parser = argparse.ArgumentParser(description="Generate sample property listings")
    parser.add_argument("--agents", type=int, default=3, help="Number of agents")
    parser.add_argument("--per-agent", type=int, default=10, help="Listings per agent")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument(
        "--sink",
        choices=["console", "json", "kafka"],
        default="json",
        help="Where to write the listings",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=project_root / "local",
        help="Directory for the json sink",
    )
    parser.add_argument(
        "--bootstrap-servers",
        default=config.kafka.bootstrap_servers,
        help="Kafka bootstrap servers for the kafka sink",
    )
    args = parser.parse_args()

    setup_logging(level=config.log_level, format_type=config.log_format)

    generator = ListingGenerator(seed=args.seed)
    sink = build_batch_sink(args.sink, args.output_dir, args.bootstrap_servers)

    listings = []
    for _ in range(args.agents):
        owner_id = generator.fake.uuid4()
        listings.extend(generator.generate_batch(args.per_agent, owner_id=owner_id))

    sink.write_batch("properties", listings)
    sink.close()


if __name__ == "__main__":
    main()
