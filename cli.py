# cli.py
import click
import time
from datetime import datetime, timezone

from jobstore import AddJob, DeleteJob, MarkDone, SetPeriod, SetTitle, Tick, now_ms
from models import overdue
from storage import DEFAULT_DB_PATH, Storage
from sync import BootstrapError, HttpPersister, LocalPersister, Session
from view import due_rows

DEFAULT_TICK_MINUTES = 15


@click.group()
@click.option("--db", "db_path", default=DEFAULT_DB_PATH, help="SQLite file holding jobs and config")
@click.option("--remote", default=None, help="Dashboard URL to sync with (uses config server_url if set)")
@click.pass_context
def cli(ctx, db_path, remote):
    """remindctl - reminders for recurring jobs"""
    ctx.obj = {"db_path": db_path, "remote": remote}


def open_session(ctx) -> Session:
    db = Storage(ctx.obj["db_path"])
    ctx.obj["db"] = db
    url = ctx.obj["remote"] or db.get_config("server_url")
    persister = HttpPersister(url) if url else LocalPersister(db)
    try:
        return Session(persister)
    except BootstrapError as e:
        click.echo(f"❌ {e}")
        ctx.exit(1)


def warn_if_unsaved(session):
    if not session.last_persist_ok:
        click.echo("⚠️ Change applied locally but could not be saved.")


def echo_due(store):
    rows = due_rows(store)
    if not rows:
        click.echo("Nothing is due.")
        return
    for r in rows:
        click.echo(f"{r.job_id} | {r.title} | every {r.period_days}d | {r.last_done_label}")


def format_ms(ms):
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat(timespec="seconds")


# ---------------- Due / List ----------------
@cli.command()
@click.pass_context
def due(ctx):
    """List due jobs, most overdue first"""
    echo_due(open_session(ctx).store)


@cli.command(name="list")
@click.pass_context
def list_jobs(ctx):
    """List all tracked jobs"""
    store = open_session(ctx).store
    if not store.jobs:
        click.echo("No jobs found.")
        return
    for job_id, job in sorted(store.jobs.items()):
        state = "due" if overdue(store.now, job) is not None else "ok"
        click.echo(f"{job_id} | {job.title} | every {job.period_days}d | last_done={format_ms(job.last_done)} | {state}")


# ---------------- Add ----------------
@cli.command()
@click.argument("title")
@click.argument("days")
@click.pass_context
def add(ctx, title, days):
    """Track a new job repeating every DAYS days"""
    session = open_session(ctx)
    session.dispatch(SetTitle(title))
    store = session.dispatch(SetPeriod(days))
    if not store.can_create:
        click.echo(f"❌ Invalid job: title must be non-empty and days a whole number >= 1 (got {days!r}).")
        ctx.exit(1)
    store = session.dispatch(AddJob())
    click.echo(f"✅ Job {store.next_id - 1} added: {title} (every {days}d).")
    warn_if_unsaved(session)


# ---------------- Done / Delete ----------------
@cli.command()
@click.argument("job_id", type=int)
@click.pass_context
def done(ctx, job_id):
    """Mark a job as done now"""
    session = open_session(ctx)
    known = job_id in session.store.jobs
    session.dispatch(MarkDone(job_id))
    click.echo(f"✅ Job {job_id} marked done." if known else f"Job {job_id} not found, nothing to do.")
    warn_if_unsaved(session)


@cli.command()
@click.argument("job_id", type=int)
@click.pass_context
def delete(ctx, job_id):
    """Stop tracking a job"""
    session = open_session(ctx)
    known = job_id in session.store.jobs
    session.dispatch(DeleteJob(job_id))
    click.echo(f"🗑 Job {job_id} deleted." if known else f"Job {job_id} not found, nothing to do.")
    warn_if_unsaved(session)


@cli.command()
@click.argument("job_id", type=int)
@click.pass_context
def show(ctx, job_id):
    """Show details of a single job"""
    store = open_session(ctx).store
    job = store.jobs.get(job_id)
    if job is None:
        click.echo(f"❌ Job {job_id} not found.")
        return

    amount = overdue(store.now, job)
    click.echo(f"🔎 Job {job_id}")
    click.echo(f"  Title: {job.title}")
    click.echo(f"  Every: {job.period_days} days")
    click.echo(f"  Last done: {format_ms(job.last_done)}")
    if job.last_done is None:
        click.echo("  Status: never done")
    elif amount is None:
        click.echo(f"  Status: due at {format_ms(job.last_done + job.period)}")
    else:
        click.echo(f"  Status: overdue by {amount // 3_600_000}h")


# ---------------- Watch ----------------
@cli.command()
@click.option("--interval-minutes", default=None, type=float, help="Refresh interval (uses config tick_minutes if set)")
@click.pass_context
def watch(ctx, interval_minutes):
    """Re-print the due list on every clock tick"""
    session = open_session(ctx)
    if interval_minutes is None:
        interval_minutes = float(ctx.obj["db"].get_config("tick_minutes", default=str(DEFAULT_TICK_MINUTES)))

    click.echo(f"👀 Watching due jobs (every {interval_minutes:g} min). Press Ctrl+C to stop.")
    try:
        while True:
            store = session.dispatch(Tick(now_ms()))
            click.echo(f"--- {format_ms(store.now)} ---")
            echo_due(store)
            time.sleep(interval_minutes * 60)
    except KeyboardInterrupt:
        click.echo("\n🛑 Stopped.")


# ---------------- Serve ----------------
@cli.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
@click.pass_context
def serve(ctx, host, port):
    """Run the web dashboard"""
    import uvicorn
    from dashboard import create_app

    uvicorn.run(create_app(ctx.obj["db_path"]), host=host, port=port)


# ---------------- Config management ----------------
@cli.group()
def config():
    """Runtime configuration (tick_minutes, server_url)"""
    pass

@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx, key, value):
    """Set a config key to a value"""
    Storage(ctx.obj["db_path"]).set_config(key, value)
    click.echo(f"🛠️ Config '{key}' set to '{value}'.")

@config.command("get")
@click.argument("key")
@click.option("--default", default=None, help="Fallback if key not set")
@click.pass_context
def config_get(ctx, key, default):
    """Get a config key"""
    value = Storage(ctx.obj["db_path"]).get_config(key)
    if value is None:
        if default is not None:
            click.echo(f"{key}={default} (default)")
        else:
            click.echo(f"{key} not set")
        return
    click.echo(f"{key}={value}")

@config.command("list")
@click.pass_context
def config_list(ctx):
    """List all config keys"""
    rows = Storage(ctx.obj["db_path"]).list_config()
    if not rows:
        click.echo("No config keys set.")
        return
    for row in rows:
        click.echo(f"{row['key']}={row['value']} (updated_at={row['updated_at']})")


# ---------------- Entrypoint ----------------
if __name__ == "__main__":
    cli()
