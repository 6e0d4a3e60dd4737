import click

from labstock.extensions import db
from labstock.services.dashboard import audit_stock


def register_cli(app):
    @app.cli.command("init-db")
    def init_db() -> None:
        """Create any missing inventory tables."""
        db.create_all()
        click.echo("Inventory tables are in place.")

    @app.cli.command("check-stock")
    def check_stock() -> None:
        """Compare cached material stock with the transaction ledger."""
        mismatches = audit_stock(db.session)
        if not mismatches:
            click.echo("Stock OK: every material matches its transaction ledger.")
            return
        click.echo(f"{len(mismatches)} material(s) differ from their ledger:")
        for entry in mismatches:
            click.echo(
                f"  #{entry['material_id']} {entry['name']}: "
                f"stock={entry['stock']} ledger={entry['ledger_total']}"
            )
        raise SystemExit(1)
