from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import settings
from app.schemas.form import FormResponse

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


def render_form_page(form: FormResponse) -> str:
    template = _env.get_template("form.html")
    submit_url = f"{settings.api_prefix}/forms/{form.id}/submit"
    return template.render(form=form, submit_url=submit_url)


def render_not_found_page() -> str:
    return "<!DOCTYPE html><html><body><h1>Form not found</h1></body></html>"
