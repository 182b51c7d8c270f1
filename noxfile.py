"""Nox sessions for mdtoimage."""

import nox


PYPROJECT = nox.project.load_toml("pyproject.toml")
PYTHON_VERSIONS = nox.project.python_versions(PYPROJECT, max_version="3.14")
DEV_DEPENDENCIES = nox.project.dependency_groups(PYPROJECT, "dev")
nox.options.default_venv_backend = "uv"
nox.options.sessions = ["tests", "lint"]


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the suite on every supported interpreter."""
    session.install(".", *DEV_DEPENDENCIES)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def coverage(session: nox.Session) -> None:
    """Run the suite once with line coverage for the package."""
    session.install(".", *DEV_DEPENDENCIES)
    session.run("pytest", "--cov=mdtoimage", "--cov-report=term-missing", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def lint(session: nox.Session) -> None:
    """Lint the sources and tests with ruff."""
    session.install("ruff")
    session.run("ruff", "check", "src", "tests")
