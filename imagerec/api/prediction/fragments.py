"""HTML fragments swapped into the upload page by htmx."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from imagerec.modules.prediction.models import PredictionResult

TEMPLATE_DIR = Path(__file__).parent / "templates"

jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)


def render_result(result: PredictionResult) -> str:
    return jinja_env.get_template("result.html").render(result=result)


def render_error(message: str, description: str = "") -> str:
    return jinja_env.get_template("error.html").render(
        message=message, description=description
    )
