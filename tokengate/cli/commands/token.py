"""Token management commands."""

from typing import List, Optional
from uuid import UUID

import typer
from pydantic import ValidationError
from rich.prompt import Confirm

from tokengate.cli.utils.context import CLIContext
from tokengate.core.models import TokenCreate, TokenRecord, TokenStatus, TokenUpdate
from tokengate.core.services import TokenNotFoundError

app = typer.Typer(help="Manage access tokens")

LIST_COLUMNS = ["id", "client_name", "allowed_pages", "is_active", "expires_at", "access_count"]


def _status_label(record: TokenRecord) -> str:
    if not record.is_active:
        return "inactive"
    if record.is_expired():
        return "expired"
    return "active"


def _print_record(cli_ctx: CLIContext, record: TokenRecord, title: Optional[str] = None):
    data = record.model_dump(mode="json", exclude={"access_log"})
    data["status"] = _status_label(record)
    data["access_url"] = f"/t/{record.token}"
    data["recent_accesses"] = len(record.access_log)
    cli_ctx.formatter.print_detail(data, title=title)


def _not_found(cli_ctx: CLIContext, token_id: UUID):
    cli_ctx.formatter.print_error(f"Token '{token_id}' not found")
    raise typer.Exit(1)


@app.command("create")
def create_token(
    ctx: typer.Context,
    client_name: str = typer.Argument(..., help="Client the token is issued to"),
    page: List[str] = typer.Option(
        ..., "--page", "-p", help="Allowed page (repeatable, '*' for all pages)"
    ),
    domain: Optional[List[str]] = typer.Option(
        None, "--domain", "-d", help="Allowed requesting host (repeatable)"
    ),
    days: Optional[int] = typer.Option(None, "--days", help="Days until expiration"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Client email"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-form notes"),
):
    """
    Issue a new access token.

    Example:
        tokengate token create "Acme Corp" --page report --page dash --days 14
        tokengate token create "Partner" --page '*' --domain partner.example.com
    """
    cli_ctx: CLIContext = ctx.obj

    try:
        request = TokenCreate(
            client_name=client_name,
            client_email=email,
            allowed_pages=page,
            allowed_domains=domain or [],
            expiration_days=days,
            notes=notes,
        )
    except ValidationError as e:
        cli_ctx.formatter.print_error(f"Invalid token request: {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    record = cli_ctx.run(lambda service: service.issue(request))

    if cli_ctx.formatter.is_json:
        cli_ctx.formatter.print_json({
            "token": record.model_dump(mode="json"),
            "access_url": f"/t/{record.token}",
        })
        return

    cli_ctx.formatter.print_success(f"Token for '{record.client_name}' created")
    _print_record(cli_ctx, record)


@app.command("list")
def list_tokens(
    ctx: typer.Context,
    status: TokenStatus = typer.Option(TokenStatus.ALL, "--status", "-s", help="Status filter"),
    limit: int = typer.Option(50, "--limit", "-l", min=1, help="Maximum number of results"),
    page: int = typer.Option(1, "--page", min=1, help="Result page"),
):
    """
    List tokens, newest first.

    Example:
        tokengate token list
        tokengate token list --status expiring_soon
    """
    cli_ctx: CLIContext = ctx.obj

    result = cli_ctx.run(lambda service: service.list(status=status, page=page, limit=limit))
    items = [t.to_summary() for t in result["tokens"]]

    if cli_ctx.formatter.is_json:
        cli_ctx.formatter.print_json({"tokens": items, "pagination": result["pagination"]})
        return

    cli_ctx.formatter.print_list(items, columns=LIST_COLUMNS, title="Access Tokens")
    pagination = result["pagination"]
    cli_ctx.console.print(
        f"[dim]Page {pagination['page']} of {max(pagination['pages'], 1)}, "
        f"{pagination['total']} token(s)[/dim]"
    )


@app.command("show")
def show_token(
    ctx: typer.Context,
    token_id: UUID = typer.Argument(..., help="Token record ID"),
):
    """Show a token with its recent access log."""
    cli_ctx: CLIContext = ctx.obj

    try:
        record = cli_ctx.run(lambda service: service.get(token_id))
    except TokenNotFoundError:
        _not_found(cli_ctx, token_id)

    if cli_ctx.formatter.is_json:
        cli_ctx.formatter.print_json(record.model_dump(mode="json"))
        return

    _print_record(cli_ctx, record, title=f"Token {record.id}")
    if record.access_log:
        cli_ctx.formatter.print_list(
            [event.model_dump(mode="json") for event in reversed(record.access_log)],
            columns=["timestamp", "page", "ip", "user_agent"],
            title="Access Log",
        )


@app.command("activate")
def activate_token(
    ctx: typer.Context,
    token_id: UUID = typer.Argument(..., help="Token record ID"),
):
    """Re-enable a deactivated token."""
    cli_ctx: CLIContext = ctx.obj
    try:
        cli_ctx.run(lambda service: service.set_active(token_id, True))
    except TokenNotFoundError:
        _not_found(cli_ctx, token_id)
    cli_ctx.formatter.print_success(f"Token '{token_id}' activated")


@app.command("deactivate")
def deactivate_token(
    ctx: typer.Context,
    token_id: UUID = typer.Argument(..., help="Token record ID"),
):
    """Revoke a token without deleting it."""
    cli_ctx: CLIContext = ctx.obj
    try:
        cli_ctx.run(lambda service: service.set_active(token_id, False))
    except TokenNotFoundError:
        _not_found(cli_ctx, token_id)
    cli_ctx.formatter.print_success(f"Token '{token_id}' deactivated")


@app.command("extend")
def extend_token(
    ctx: typer.Context,
    token_id: UUID = typer.Argument(..., help="Token record ID"),
    days: int = typer.Option(30, "--days", min=1, help="Days added to the current expiry"),
):
    """
    Push a token's expiry further out.

    Example:
        tokengate token extend 3f2c... --days 7
    """
    cli_ctx: CLIContext = ctx.obj
    try:
        record = cli_ctx.run(lambda service: service.extend(token_id, days))
    except TokenNotFoundError:
        _not_found(cli_ctx, token_id)
    cli_ctx.formatter.print_success(
        f"Token '{token_id}' now expires at {record.expires_at.isoformat()}"
    )


@app.command("update")
def update_token(
    ctx: typer.Context,
    token_id: UUID = typer.Argument(..., help="Token record ID"),
    page: Optional[List[str]] = typer.Option(None, "--page", "-p", help="Replace allowed pages"),
    domain: Optional[List[str]] = typer.Option(
        None, "--domain", "-d", help="Replace allowed hosts"
    ),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Client email"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-form notes"),
):
    """Change the pages, hosts or contact details of a token."""
    cli_ctx: CLIContext = ctx.obj

    changes = {}
    if page:
        changes["allowed_pages"] = page
    if domain:
        changes["allowed_domains"] = domain
    if email is not None:
        changes["client_email"] = email
    if notes is not None:
        changes["notes"] = notes

    if not changes:
        cli_ctx.formatter.print_warning("Nothing to update")
        raise typer.Exit(0)

    update = TokenUpdate(**changes)
    try:
        record = cli_ctx.run(lambda service: service.update(token_id, update))
    except TokenNotFoundError:
        _not_found(cli_ctx, token_id)
    cli_ctx.formatter.print_success(f"Token '{record.id}' updated")


@app.command("delete")
def delete_token(
    ctx: typer.Context,
    token_id: UUID = typer.Argument(..., help="Token record ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
):
    """
    Delete a token and its access log.

    Example:
        tokengate token delete 3f2c... --force
    """
    cli_ctx: CLIContext = ctx.obj

    if not force:
        if not Confirm.ask(f"Are you sure you want to delete token '{token_id}'?"):
            cli_ctx.formatter.print_warning("Operation cancelled")
            raise typer.Exit(0)

    try:
        cli_ctx.run(lambda service: service.delete(token_id))
    except TokenNotFoundError:
        _not_found(cli_ctx, token_id)
    cli_ctx.formatter.print_success(f"Token '{token_id}' deleted")
