import argparse
import json
from pathlib import Path

from . import __version__
from .client import ApiError, CandidateClient
from .database import init_database
from .env import get_settings, load_env
from .errors import ValidationError
from .schema import validate_candidate
from .views import CandidateForm, CandidateListView, SearchState


def _load_json(path_str: str) -> dict:
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Invalid JSON in {input_path}: {e}")


def _client(args: argparse.Namespace) -> CandidateClient:
    return CandidateClient(args.api_url)


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "talentdesk.api:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )


def cmd_init_db(args: argparse.Namespace) -> None:
    db_path = Path(args.db) if args.db else get_settings().db_path
    init_database(db_path)
    print(f"Database ready: {db_path}")


def cmd_validate(args: argparse.Namespace) -> None:
    payload = _load_json(args.input)
    errors = validate_candidate(payload, partial=args.partial)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def cmd_list(args: argparse.Namespace) -> None:
    state = SearchState()
    try:
        state.update(
            name=args.name,
            email=args.email,
            company=args.company,
            role=args.role,
            industry=args.industry,
            degree=args.degree,
            degree_title=args.degree_title,
            min_experience=args.min_experience,
            max_experience=args.max_experience,
            available=args.available,
        )
    except ValidationError as e:
        raise SystemExit(f"{e.message}: {'; '.join(e.errors)}")

    view = CandidateListView(_client(args), state)
    try:
        view.load_all(max_pages=args.pages)
    except ApiError as e:
        raise SystemExit(f"API error: {e}")

    if view.is_empty:
        print("No candidates found matching your search criteria.")
        return

    summaries = view.summaries()
    print(f"Found {len(summaries)} candidates:\n")
    for s in summaries:
        print(f"ID: {s.id}")
        print(f"  Name: {s.name} <{s.email}> [{s.availability}]")
        if s.headline:
            print(f"  Latest: {s.headline} ({s.industry})")
        if s.education:
            print(f"  Education: {s.education}, {s.institution}")
        if s.resume_url:
            print(f"  Resume: {args.api_url}{s.resume_url}")
        print()
    if view.has_next_page:
        print("More results available; raise --pages to see them.")


def cmd_show(args: argparse.Namespace) -> None:
    try:
        candidate = _client(args).get_candidate(args.id)
    except ApiError as e:
        raise SystemExit(f"API error: {e}")
    print(json.dumps(candidate, indent=2, ensure_ascii=False))


def _fill_form(form: CandidateForm, payload: dict) -> None:
    form.set(**{k: payload[k] for k in form.fields if k in payload})
    if "experience" in payload:
        form.experience = []
        for exp in payload.get("experience") or []:
            form.add_experience(**exp)
    if "education" in payload:
        form.education = []
        for edu in payload.get("education") or []:
            form.add_education(**edu)


def cmd_create(args: argparse.Namespace) -> None:
    form = CandidateForm(_client(args))
    _fill_form(form, _load_json(args.input))
    try:
        saved = form.submit(resume_path=Path(args.resume) if args.resume else None)
    except ValidationError as e:
        raise SystemExit(f"{e.message}: {'; '.join(e.errors)}")
    except ApiError as e:
        raise SystemExit(f"API error: {e}")
    print(f"Created: {saved['id']}")


def cmd_update(args: argparse.Namespace) -> None:
    try:
        form = CandidateForm(_client(args), candidate_id=args.id).load()
        _fill_form(form, _load_json(args.input))
        form.submit()
    except ValidationError as e:
        raise SystemExit(f"{e.message}: {'; '.join(e.errors)}")
    except ApiError as e:
        raise SystemExit(f"API error: {e}")
    print(f"Updated: {args.id}")


def cmd_delete(args: argparse.Namespace) -> None:
    try:
        _client(args).delete_candidate(args.id)
    except ApiError as e:
        raise SystemExit(f"API error: {e}")
    print(f"Deleted: {args.id}")


def _bool_arg(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "y")


def main():
    # Load .env if present (TALENTDESK_DB_PATH, TALENTDESK_API_URL, etc.)
    load_env()
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="talentdesk", description="TalentDesk candidate tracker")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--api-url", default=settings.api_url, help=f"API base URL (default: {settings.api_url})")

    subparsers = parser.add_subparsers(dest="command")

    srv = subparsers.add_parser("serve", help="Run the HTTP API")
    srv.add_argument("--host", help="Bind address (default: TALENTDESK_HOST or 0.0.0.0)")
    srv.add_argument("--port", type=int, help="Port (default: TALENTDESK_PORT or 3010)")
    srv.set_defaults(func=cmd_serve)

    idb = subparsers.add_parser("init-db", help="Create database tables")
    idb.add_argument("--db", help="Path to SQLite database (default: TALENTDESK_DB_PATH)")
    idb.set_defaults(func=cmd_init_db)

    val = subparsers.add_parser("validate", help="Validate a candidate JSON file")
    val.add_argument("--input", required=True, help="Path to candidate JSON")
    val.add_argument("--partial", action="store_true", help="Validate as an update body")
    val.set_defaults(func=cmd_validate)

    lst = subparsers.add_parser("list", help="Search candidates")
    lst.add_argument("--name", help="Substring of first or last name")
    lst.add_argument("--email", help="Substring of email")
    lst.add_argument("--company", help="Substring of any experience company")
    lst.add_argument("--role", help="Substring of any experience role")
    lst.add_argument("--industry", help="Substring of any experience industry")
    lst.add_argument("--degree", help="Substring of any education degree")
    lst.add_argument("--degree-title", help="Substring of any education title")
    lst.add_argument("--min-experience", type=float, help="Minimum total years of experience")
    lst.add_argument("--max-experience", type=float, help="Maximum total years of experience")
    lst.add_argument("--available", type=_bool_arg, help="true/false")
    lst.add_argument("--pages", type=int, default=1, help="Pages of results to fetch (default 1)")
    lst.set_defaults(func=cmd_list)

    shw = subparsers.add_parser("show", help="Show one candidate as JSON")
    shw.add_argument("--id", required=True, help="Candidate id")
    shw.set_defaults(func=cmd_show)

    crt = subparsers.add_parser("create", help="Create a candidate from a JSON file")
    crt.add_argument("--input", required=True, help="Path to candidate JSON")
    crt.add_argument("--resume", help="Optional resume file (.pdf, .doc, .docx)")
    crt.set_defaults(func=cmd_create)

    upd = subparsers.add_parser("update", help="Update a candidate; nested lists in the file replace stored ones")
    upd.add_argument("--id", required=True, help="Candidate id")
    upd.add_argument("--input", required=True, help="Path to candidate JSON")
    upd.set_defaults(func=cmd_update)

    dlt = subparsers.add_parser("delete", help="Delete a candidate")
    dlt.add_argument("--id", required=True, help="Candidate id")
    dlt.set_defaults(func=cmd_delete)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
