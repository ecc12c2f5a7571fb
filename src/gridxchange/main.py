"""Main entry point for the GridXchange marketplace command-line tool."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .cli import MarketDisplay
from .config import MarketConfigManager
from .core import MarketplaceService
from .loaders import ScenarioLoader
from .models import Coordinate, EntryKind, GeoScope
from .utils import trades_to_dataframe, save_dataframe, summarize_trades
from .validation import MarketError

# Default file paths
DEFAULT_DATA_DIR = Path(__file__).parent / "data"
DEFAULT_SCENARIO_FILE = "sample_scenario.json"


logger = logging.getLogger(__name__)


class MarketplaceRunner:
    """Loads a scenario into a marketplace service and renders its state."""

    service: MarketplaceService
    loader: ScenarioLoader
    display: MarketDisplay

    def __init__(self, config_manager: Optional[MarketConfigManager] = None):
        """Initialize the runner.

        Args:
            config_manager: Optional config manager. Creates default if None.
        """
        self.service = MarketplaceService(config_manager=config_manager or MarketConfigManager())
        self.loader = ScenarioLoader(self.service)
        self.display = MarketDisplay()

    def load(self, scenario_path: Path) -> None:
        self.display.show_header()
        counts = self.loader.from_file(scenario_path)
        self.display.show_loading_summary(
            counts["households"], counts["offers"], counts["requests"]
        )
        for failure in self.loader.failures:
            self.display.show_warning(f"Scenario action failed: {failure}")

    def sweep(self) -> None:
        swept = self.service.sweep_expired_entries()
        self.display.show_success(f"Swept {swept} expired entries")

    def show_market(
        self,
        household_id: Optional[str] = None,
        kind: Optional[EntryKind] = None,
        geo_scope: Optional[GeoScope] = None,
    ) -> None:
        """Show households, trades and either the full book or one acceptor's view."""
        self.display.show_households(self.service.list_households())

        if household_id is None:
            for entry_kind in (EntryKind.OFFER, EntryKind.REQUEST):
                entries = self.service.book.list_entries(entry_kind)
                self.display.show_entries(
                    f"All {entry_kind.value}s", [(entry, None) for entry in entries]
                )
        else:
            kinds = [kind] if kind is not None else [EntryKind.OFFER, EntryKind.REQUEST]
            for entry_kind in kinds:
                entries = self.service.list_eligible_entries_with_distance(
                    entry_kind, household_id, geo_scope
                )
                self.display.show_entries(
                    f"{entry_kind.value.capitalize()}s available to {household_id}", entries
                )

        self.display.show_trades(self.service.all_trades())
        self.display.show_summary(self.service.marketplace_summary())

    def export_trades(self, output: Path) -> Path:
        df = trades_to_dataframe(self.service.all_trades())
        path = save_dataframe(df, output.parent, output.name)
        totals = summarize_trades(df)
        self.display.show_success(
            f"Exported {totals['trades']} trades ({totals['energy_kwh']:.2f} kWh) to {path}"
        )
        return path

    def show_rules(self) -> None:
        self.display.show_rules(self.service.eligibility.get_rules_info())


def setup_logging(log_level: str = "NONE") -> None:
    """Set up logging configuration for the marketplace tool.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, NONE)
    """
    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_level.upper() == "NONE":
        logging.getLogger().setLevel(logging.CRITICAL + 1)  # Higher than CRITICAL
        return

    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_geo_scope(
    service: MarketplaceService,
    lat: Optional[float],
    lon: Optional[float],
    radius: Optional[float],
    location_type: Optional[str],
) -> Optional[GeoScope]:
    """Build a geo scope from command-line values, or None when no centre is given."""
    if lat is None and lon is None:
        return None
    if lat is None or lon is None:
        raise ValueError("--lat and --lon must be given together")

    if radius is None:
        radius = (
            service.suggested_radius(location_type)
            if location_type
            else service.config_manager.get_default_radius_km()
        )
    return GeoScope(center=Coordinate(latitude=lat, longitude=lon), radius_km=radius)


def main() -> None:
    """Main entry point for the marketplace tool."""
    parser = argparse.ArgumentParser(description="GridXchange Energy Marketplace")
    parser.add_argument(
        "--scenario",
        type=Path,
        default=DEFAULT_DATA_DIR / DEFAULT_SCENARIO_FILE,
        help="Scenario JSON file to replay (default: bundled sample)",
    )
    parser.add_argument(
        "--config-dir", type=Path, help="Directory containing market_config.json"
    )
    parser.add_argument(
        "--household", help="Show only entries this household may accept"
    )
    parser.add_argument(
        "--kind",
        choices=[k.value for k in EntryKind],
        help="Restrict the household view to offers or requests",
    )
    parser.add_argument("--lat", type=float, help="Latitude of the search centre")
    parser.add_argument("--lon", type=float, help="Longitude of the search centre")
    parser.add_argument("--radius", type=float, help="Search radius in kilometres")
    parser.add_argument(
        "--location-type",
        choices=["urban", "suburban", "rural"],
        help="Pick the suggested radius for this kind of area",
    )
    parser.add_argument(
        "--sweep",
        action="store_true",
        help="Cancel expired pending entries before displaying",
    )
    parser.add_argument(
        "--export-trades",
        type=Path,
        help="Write the trade history to this .csv or .json file",
    )
    parser.add_argument(
        "--show-rules",
        action="store_true",
        help="Display information about acceptance rules and exit",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "NONE"],
        default="NONE",
        help="Set logging level",
    )

    args = parser.parse_args()

    setup_logging(args.log_level)

    try:
        config_manager = MarketConfigManager(args.config_dir) if args.config_dir else None
        runner = MarketplaceRunner(config_manager)

        if args.show_rules:
            runner.show_rules()
            return

        if not args.scenario.exists():
            logger.error(
                f"Scenario file not found at '{args.scenario}'. Please check the file path and try again."
            )
            sys.exit(1)

        runner.load(args.scenario)

        if args.sweep:
            runner.sweep()

        geo_scope = build_geo_scope(
            runner.service, args.lat, args.lon, args.radius, args.location_type
        )
        kind = EntryKind(args.kind) if args.kind else None
        runner.show_market(args.household, kind, geo_scope)

        if args.export_trades:
            runner.export_trades(args.export_trades)

    except KeyboardInterrupt:
        logger.info("Marketplace run interrupted by user")
        sys.exit(1)
    except MarketError as e:
        MarketDisplay().show_error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.error(
            f"Fatal error while running the marketplace: {e}. Please check the scenario and try again."
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
