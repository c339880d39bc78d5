import nox

PYTHONS = ["3.10", "3.11", "3.12"]
LOCATIONS = ["src", "tests", "noxfile.py"]

nox.options.sessions = ["tests", "lint", "type_check"]


@nox.session(python=PYTHONS)
def tests(session: nox.Session) -> None:
    """Run the lock test suite against fakeredis, with coverage."""
    session.install("-e", ".[dev]")
    session.run(
        "pytest", "--cov=mrsw_lock", "--cov-report=term-missing", *session.posargs
    )


@nox.session(python=PYTHONS[-1])
def autoformat(session: nox.Session) -> None:
    """Apply ruff fixes and formatting in place."""
    session.install("ruff")
    session.run("ruff", "check", "--fix", *LOCATIONS)
    session.run("ruff", "format", *LOCATIONS)


@nox.session(python=PYTHONS[-1])
def lint(session: nox.Session) -> None:
    """Fail on ruff findings or unformatted files."""
    session.install("ruff")
    session.run("ruff", "check", *LOCATIONS)
    session.run("ruff", "format", "--check", *LOCATIONS)


@nox.session(python=PYTHONS)
def type_check(session: nox.Session) -> None:
    """Run strict mypy over the package."""
    session.install("-e", ".[dev]")
    session.run("mypy", *session.posargs)
