import re
from pathlib import Path


ROOT_DIR = Path(__file__).resolve().parents[1]
PACKAGE_DIR = ROOT_DIR / "recurring_planner"
ROUTERS_DIR = PACKAGE_DIR / "web" / "routers"


def test_routers_delegate_to_handlers_without_importing_application():
    for router_file in ROUTERS_DIR.glob("*_router.py"):
        source = router_file.read_text(encoding="utf-8")
        assert re.search(r"^\s*from\s+recurring_planner\.application\s+import\b", source, flags=re.MULTILINE) is None
        assert "from recurring_planner.web import handlers as web_handlers" in source


def test_package_init_has_no_application_side_effect_import():
    package_init = (PACKAGE_DIR / "__init__.py").read_text(encoding="utf-8")
    assert ".application import" not in package_init


def test_asgi_entrypoint_exports_application_symbols():
    asgi_entrypoint = (PACKAGE_DIR / "asgi.py").read_text(encoding="utf-8")
    assert "from recurring_planner.application import app, create_app" in asgi_entrypoint


def test_recurrence_evaluator_has_no_database_imports():
    source = (PACKAGE_DIR / "services" / "recurrence_service.py").read_text(encoding="utf-8")
    assert "sqlmodel" not in source
    assert "sqlalchemy" not in source
