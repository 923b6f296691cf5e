import os, logging
from typing import Any, Dict, List, Optional

from flask import Flask, render_template, abort, Response

import course_settings
from course_catalog import COURSE_PAGES, course_page
from course_settings import BASE_PATH, BRAND_NAME, CONTACT_PHONE, LOG_LEVEL

# ---------------- App & config ----------------
app = Flask(__name__)
app.secret_key = course_settings.SECRET_KEY
app.config.update(
    SESSION_COOKIE_SECURE=course_settings.SESSION_COOKIE_SECURE,
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE="Lax",
    SIGNUP_SUBMIT_URL=course_settings.SIGNUP_SUBMIT_URL,
)

logging.basicConfig(level=LOG_LEVEL)
log = logging.getLogger("scrumacademy-site")

# Blueprint modules, imported once the app exists.
from signup import build_form, section_context, section_page, signup_bp, status_from_query
from signup_form import Variant
from api import api_bp

HOME_HERO = {
    "title_lead": "Scrum",
    "title_rest": "trainingen voor teams die willen leveren",
    "subtitle": "Praktijkgerichte trainingen voor Scrum Masters, Product Owners en teams.",
    "details": None,
    "price": None,
    "training_dates": [],
    "first_date_value": "",
}

# -------------- Template helpers --------------
@app.context_processor
def inject_helpers():
    def bp(path: str) -> str:
        base = (BASE_PATH or "").rstrip("/")
        if not path.startswith("/"):
            path = "/" + path
        return (base + path) or "/"

    return dict(
        bp=bp,
        BASE_PATH=BASE_PATH,
        BRAND_NAME=BRAND_NAME,
        CONTACT_PHONE=CONTACT_PHONE,
    )


def _format_price(amount: Any) -> str:
    """Dutch notation: 1195 -> "1.195"."""
    try:
        return f"{int(amount):,}".replace(",", ".")
    except (TypeError, ValueError):
        return str(amount or "")


def _hero_vm(page: Dict[str, Any]) -> Dict[str, Any]:
    title = page.get("hero_title") or ""
    first, _, rest = title.partition(" ")
    price = page.get("price")
    dates: List[Dict[str, str]] = page.get("training_dates") or []
    return {
        "title_lead": first,
        "title_rest": rest,
        "subtitle": page.get("hero_subtitle") or "",
        "details": page.get("details"),
        "price": dict(price, display=_format_price(price.get("base_price"))) if price else None,
        "training_dates": dates,
        "first_date_value": dates[0].get("value", "") if dates else "",
    }


def _related_courses(exclude: Optional[str]) -> List[Dict[str, str]]:
    return [
        {"slug": slug, "title": page["hero_title"]}
        for slug, page in COURSE_PAGES.items()
        if slug != exclude
    ]

# -------------- Routes --------------
@app.get("/robots.txt")
def robots_txt() -> Response:
    return Response("User-agent: *\nDisallow:\n", mimetype="text/plain")

@app.get("/healthz")
def healthz():
    return "ok", 200

@section_page("home")
def _home_page(section: Dict[str, Any]) -> str:
    return render_template(
        "index.html",
        hero=HOME_HERO,
        courses=_related_courses(None),
        **section,
    )

@app.get("/")
def home():
    form = build_form(Variant.TRAINING)
    form.status = status_from_query()
    return _home_page(section_context(form))

@section_page("course_detail")
def _course_page(section: Dict[str, Any], slug: str) -> Optional[str]:
    page = course_page(slug)
    if not page:
        return None
    return render_template(
        "course.html",
        course=page,
        hero=_hero_vm(page),
        related=_related_courses(page["slug"]),
        **section,
    )

@app.get("/trainingen/<slug>/")
def course_detail(slug: str):
    page = course_page(slug)
    if not page:
        abort(404)
    form = build_form(Variant.TRAINING, preselected_course=page["preselected_course"])
    form.status = status_from_query()
    return _course_page(section_context(form), slug)

@section_page("team_trajecten")
def _team_page(section: Dict[str, Any]) -> str:
    return render_template("team.html", **section)

@app.get("/team-trajecten/")
def team_trajecten():
    form = build_form(Variant.TEAM)
    form.status = status_from_query()
    return _team_page(section_context(form))

@app.get("/privacyverklaring")
def privacy():
    return render_template("privacy.html")

# ---- Blueprints ----
app.register_blueprint(signup_bp, url_prefix="/aanmelden")
app.register_blueprint(api_bp, url_prefix="/api")

from werkzeug.middleware.proxy_fix import ProxyFix

# Trust the hosting proxy so scheme/host are correct for url_for(_external=True)
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)


# ---------------------------------------------------------------
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 8080)), debug=False)
