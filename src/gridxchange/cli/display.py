"""Display module for marketplace state with rich terminal output."""

from typing import Any, Optional, Sequence
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from ..geo import format_distance
from ..models import Household, MarketplaceEntry, Trade


class MarketDisplay:
    """Handles all display output for the GridXchange command-line tool."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize display with Rich console."""
        self.console = console or Console()

    def show_header(self) -> None:
        """Display the marketplace header."""
        header_text = Text("☀️ GRIDXCHANGE ENERGY MARKETPLACE", style="bold yellow")

        panel = Panel(
            "Peer-to-peer solar energy trading\n\n"
            "🔋 Offers: sell surplus generation\n"
            "🏠 Requests: buy energy for unmet consumption\n"
            "🤝 Trades: one provider, one receiver, fixed quantity and price",
            title=header_text,
            border_style="yellow",
            padding=(1, 2),
        )

        self.console.print()
        self.console.print(panel)
        self.console.print()

    def show_loading_summary(self, household_count: int, offer_count: int, request_count: int) -> None:
        summary = Panel(
            f"🏠 Households: {household_count:,}\n"
            f"🔋 Offers: {offer_count:,}\n"
            f"📥 Requests: {request_count:,}",
            title="[bold green]Scenario Loaded[/bold green]",
            border_style="green",
        )
        self.console.print(summary)
        self.console.print()

    def show_households(self, households: Sequence[Household]) -> None:
        table = Table(show_header=True, header_style="bold magenta", title="Households")
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("Owner", style="dim")
        table.add_column("Generation", justify="right")
        table.add_column("Consumption", justify="right")
        table.add_column("Surplus", justify="right")
        table.add_column("Position")

        for home in households:
            surplus_style = "green" if home.surplus_kwh > 0 else "red" if home.surplus_kwh < 0 else "white"
            table.add_row(
                home.id,
                home.name or "-",
                home.user_id,
                f"{home.generation_kwh:.2f} kWh",
                f"{home.consumption_kwh:.2f} kWh",
                Text(f"{home.surplus_kwh:.2f} kWh ({home.balance_label})", style=surplus_style),
                str(home.coordinate) if home.coordinate else "-",
            )

        self.console.print(table)
        self.console.print()

    def show_entries(
        self,
        title: str,
        entries: Sequence[tuple[MarketplaceEntry, Optional[float]]],
    ) -> None:
        """Show entries with an optional distance column.

        Args:
            title: Table title
            entries: (entry, distance_km) pairs; distance is None when unscoped
        """
        if not entries:
            self.console.print(f"[dim]{title}: none[/dim]")
            self.console.print()
            return

        show_distance = any(distance is not None for _, distance in entries)

        table = Table(show_header=True, header_style="bold cyan", title=title)
        table.add_column("Entry ID", style="dim")
        table.add_column("Kind")
        table.add_column("Household")
        table.add_column("Qty", justify="right")
        table.add_column("Price", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Status")
        table.add_column("Expires")
        if show_distance:
            table.add_column("Distance", justify="right")

        for entry, distance in entries:
            row = [
                entry.id,
                entry.kind.value,
                entry.household_id,
                f"{entry.quantity_kwh:.2f} kWh",
                f"${entry.unit_price:.3f}",
                f"${entry.total_amount:.2f}",
                entry.status.value,
                entry.expires_at.strftime("%Y-%m-%d %H:%M"),
            ]
            if show_distance:
                row.append(format_distance(distance) if distance is not None else "-")
            table.add_row(*row)

        self.console.print(table)
        self.console.print()

    def show_trades(self, trades: Sequence[Trade]) -> None:
        if not trades:
            self.console.print("[dim]No trades yet[/dim]")
            self.console.print()
            return

        table = Table(show_header=True, header_style="bold magenta", title="Trades")
        table.add_column("Trade ID", style="dim", width=12)
        table.add_column("Provider")
        table.add_column("Receiver")
        table.add_column("Energy", justify="right")
        table.add_column("Price", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("State")

        for trade in trades:
            state = (
                Text("In Progress", style="yellow")
                if trade.is_active
                else Text(f"Completed {trade.completed_at:%Y-%m-%d %H:%M}", style="green")
            )
            table.add_row(
                trade.id[-8:],  # Last 8 chars of trade ID
                trade.provider_id,
                trade.receiver_id,
                f"{trade.energy_kwh:.2f} kWh",
                f"${trade.unit_price:.3f}",
                f"${trade.total_amount:.2f}",
                state,
            )

        self.console.print(table)
        self.console.print()

    def show_summary(self, summary: dict[str, Any]) -> None:
        stats_text = (
            f"🏠 Households: {summary.get('households', 0)}\n"
            f"🔋 Open Offers: {summary.get('open_offers', 0)} "
            f"({summary.get('open_offer_kwh', 0):.2f} kWh)\n"
            f"📥 Open Requests: {summary.get('open_requests', 0)} "
            f"({summary.get('open_request_kwh', 0):.2f} kWh)\n"
            f"⌛ Expired (unswept): {summary.get('expired_offers', 0) + summary.get('expired_requests', 0)}\n"
            f"🤝 Active Trades: {summary.get('active_trades', 0)}\n"
            f"✅ Completed Trades: {summary.get('completed_trades', 0)} "
            f"({summary.get('settled_kwh', 0):.2f} kWh, ${summary.get('settled_amount', 0):.2f})"
        )

        self.console.print(
            Panel(stats_text, title="[bold yellow]Marketplace Summary[/bold yellow]", border_style="yellow")
        )
        self.console.print()

    def show_rules(self, rules_info: Sequence[dict[str, Any]]) -> None:
        for info in rules_info:
            requirements = "\n".join(f"  • {req}" for req in info.get("requirements", []))
            self.console.print(
                Panel(
                    f"{info.get('description', '')}\n"
                    f"Acceptor becomes: [bold]{info.get('acceptor_role', '')}[/bold]\n\n"
                    f"{requirements}",
                    title=f"[bold cyan]{info.get('name', 'Rule')}[/bold cyan]",
                    border_style="cyan",
                )
            )
        self.console.print()

    def show_success(self, message: str) -> None:
        self.console.print(f"[bold green]✅ {message}[/bold green]")

    def show_warning(self, message: str) -> None:
        self.console.print(f"[bold yellow]⚠️ {message}[/bold yellow]")

    def show_error(self, message: str) -> None:
        self.console.print(
            Panel(f"❌ {message}", title="[bold red]Error[/bold red]", border_style="red")
        )
