# dashboard.py
import json
from html import escape

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from jobstore import AddJob, DeleteJob, MarkDone, SetPeriod, SetTitle, Tick, decode_jobs, now_ms
from storage import DEFAULT_DB_PATH, Storage
from sync import LocalPersister, Session
from view import due_rows

# ---------- Shared UI ----------
BASE_STYLE = """
  body { font-family: Arial, sans-serif; margin: 0; background: #f9f9f9; color: #333; }
  h1 { background: #2196F3; color: white; padding: 15px; margin: 0; }
  h2 { margin-top: 30px; color: #2196F3; }
  .container { padding: 20px; }
  table { border-collapse: collapse; width: 100%; margin-top: 10px; background: white; }
  th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
  th { background-color: #2196F3; color: white; }
  tr:nth-child(even) { background-color: #f2f2f2; }
  tr:hover { background-color: #e0f7fa; }
  form.inline { display: inline; }
  input { padding: 6px; margin-right: 8px; }
  button[disabled] { opacity: 0.5; }
  .muted { color: #555; }
"""

DRAFT_SCRIPT = """
  <script>
    const form = document.getElementById('newJob');
    const create = document.getElementById('create');
    form.addEventListener('input', async () => {
      const res = await fetch('/draft', { method: 'POST', body: new FormData(form) });
      const data = await res.json();
      create.disabled = !data.valid;
    });
  </script>
"""

# Re-read the clock every 15 minutes so day boundaries show up without a reload
REFRESH_SECONDS = 15 * 60


def page(title: str, body_html: str) -> str:
    return f"""
    <html>
    <head>
      <title>{title}</title>
      <meta http-equiv="refresh" content="{REFRESH_SECONDS}">
      <style>{BASE_STYLE}</style>
    </head>
    <body>
      <h1>{title}</h1>
      <div class="container">
        {body_html}
      </div>
    </body>
    </html>
    """


def create_app(db_path=DEFAULT_DB_PATH, clock=now_ms):
    app = FastAPI(title="Reminders")
    db = Storage(db_path)
    session = Session(LocalPersister(db), now=clock())
    app.state.session = session

    def tick():
        session.dispatch(Tick(clock()))

    # ---------- Home ----------
    @app.get("/", response_class=HTMLResponse)
    def home():
        tick()
        store = session.store
        rows = due_rows(store)

        if not rows:
            body = "<h2>Due jobs</h2><p class='muted'>Nothing is due.</p>"
        else:
            body = """
            <h2>Due jobs</h2>
            <table>
              <tr><th>Job</th><th>Every</th><th>Last done</th><th></th></tr>
            """
            for r in rows:
                body += f"""<tr><td>{escape(r.title)}</td><td>{r.period_days} days</td><td>{r.last_done_label}</td><td>
                  <form class="inline" method="post" action="/jobs/{r.job_id}/done"><button>Mark done</button></form>
                  <form class="inline" method="post" action="/jobs/{r.job_id}/delete"><button>Delete</button></form>
                </td></tr>"""
            body += "</table>"

        disabled = "" if store.can_create else " disabled"
        body += f"""
          <h2>New job</h2>
          <form id="newJob" method="post" action="/jobs">
            <input name="title" placeholder="Title" value="{escape(store.draft.title)}">
            <input name="period" placeholder="Every N days" value="{escape(store.draft.period)}">
            <button id="create"{disabled}>Create</button>
          </form>
          {DRAFT_SCRIPT}
        """
        if not session.last_persist_ok:
            body += "<p class='muted'>Last change could not be saved.</p>"
        saved = db.snapshot_updated_at()
        body += f"<p class='muted'>{len(store.jobs)} job(s) tracked, saved {saved or 'never'}.</p>"
        return page("Reminders", body)

    # ---------- Draft / actions ----------
    @app.post("/draft", response_class=JSONResponse)
    def update_draft(title: str = Form(""), period: str = Form("")):
        session.dispatch(SetTitle(title))
        store = session.dispatch(SetPeriod(period))
        return {"valid": store.can_create}

    @app.post("/jobs")
    def create_job(title: str = Form(""), period: str = Form("")):
        tick()
        session.dispatch(SetTitle(title))
        session.dispatch(SetPeriod(period))
        session.dispatch(AddJob())
        return RedirectResponse("/", status_code=303)

    @app.post("/jobs/{job_id}/done")
    def mark_done(job_id: int):
        tick()
        session.dispatch(MarkDone(job_id))
        return RedirectResponse("/", status_code=303)

    @app.post("/jobs/{job_id}/delete")
    def delete_job(job_id: int):
        session.dispatch(DeleteJob(job_id))
        return RedirectResponse("/", status_code=303)

    # ---------- Snapshot API ----------
    @app.get("/data", response_class=JSONResponse)
    def get_data():
        return session.store.snapshot()

    @app.post("/data", response_class=JSONResponse)
    async def post_data(request: Request):
        try:
            data = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Body is not JSON")
        jobs = decode_jobs(data)
        if jobs is None:
            raise HTTPException(status_code=400, detail="Body is not a job snapshot")
        # replace_jobs takes the session lock and commits to sqlite
        store = await run_in_threadpool(session.replace_jobs, json.dumps(data))
        return {"status": "ok", "jobs": len(store.jobs)}

    @app.get("/health", response_class=JSONResponse)
    def health():
        return {"status": "ok", "jobs": len(session.store.jobs)}

    return app
