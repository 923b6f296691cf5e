"""Signup section blueprint: form pages, form actions and the hero handoff."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from werkzeug.exceptions import HTTPException

import course_settings
from api import LocalReceiver
from course_catalog import COURSE_OPTIONS, is_known_course, schedule_options_for
from signup_form import (
    SUBMITTING_LABEL,
    FormValidationError,
    HandoffSlot,
    LeadCaptureForm,
    SignupError,
    SubmissionSender,
    SubmissionStatus,
    Variant,
)
from submission import SubmissionClient

signup_bp = Blueprint("signup", __name__, template_folder="templates")

log = logging.getLogger(__name__)

SECTION_ANCHOR = "signup-section"

# endpoint -> callable(section_context, **view_args) returning HTML or None
_section_pages: Dict[str, Callable[..., Optional[str]]] = {}


def section_page(endpoint: str):
    """Register the renderer of a page that embeds the signup section."""
    def register(fn):
        _section_pages[endpoint] = fn
        return fn
    return register


def _wants_json_response() -> bool:
    if request.is_json:
        return True
    best = request.accept_mimetypes.best_match(["application/json", "text/html"])
    if not best:
        return False
    return best == "application/json" and (
        request.accept_mimetypes.get(best, 0)
        >= request.accept_mimetypes.get("text/html", 0)
    )


def _safe_next(raw: str | None, default: str) -> str:
    # Only same-site paths; "//host" would be protocol-relative.
    raw = (raw or "").strip()
    if not raw.startswith("/") or raw.startswith("//"):
        return default
    return raw


def _with_query(target: str, **params: str) -> str:
    parsed = urlparse(target)
    query_params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query_params.update(params)
    return urlunparse(parsed._replace(query=urlencode(query_params), fragment=SECTION_ANCHOR))


def _submission_sender() -> SubmissionSender:
    # Never derived from the request: Host headers are client-controlled.
    url = current_app.config.get("SIGNUP_SUBMIT_URL")
    if not url:
        return LocalReceiver()
    return SubmissionClient(url, timeout=course_settings.SIGNUP_SUBMIT_TIMEOUT)


def build_form(variant: Variant | str, preselected_course: str = "") -> LeadCaptureForm:
    """Fresh form for a page render; consumes the hero handoff if present."""
    form = LeadCaptureForm(variant, preselected_course=preselected_course)
    form.mount(HandoffSlot(session))
    return form


def section_context(form: LeadCaptureForm, next_path: Optional[str] = None) -> Dict[str, Any]:
    state = form.state
    return {
        "form": form,
        "state": state,
        "values": form.payload(),
        "labels": form.labels,
        "submitting_label": SUBMITTING_LABEL,
        "status": form.status.value,
        "is_team": form.is_team,
        "selected_provinces": state.selected_provinces(),
        "province_options": form.selectable_provinces(),
        "course_options": COURSE_OPTIONS,
        "schedule_options": schedule_options_for(form.payload()["trainingDate"]),
        "contact_phone": course_settings.CONTACT_PHONE,
        "action_url": url_for("signup.submit", variant=form.variant.value),
        "next_path": next_path or request.full_path.rstrip("?"),
        "preselected_course": form.preselected_course,
    }


def status_from_query() -> SubmissionStatus:
    return SubmissionStatus.SUCCESS if request.args.get("status") == "sent" else SubmissionStatus.IDLE


def _page_for(path: str) -> Tuple[Optional[Callable[..., Optional[str]]], Dict[str, Any]]:
    adapter = current_app.create_url_adapter(request)
    try:
        endpoint, view_args = adapter.match(urlparse(path).path, method="GET")
    except HTTPException:
        return None, {}
    return _section_pages.get(endpoint), view_args


def _render_section_page(form: LeadCaptureForm, code: int = 200, next_path: Optional[str] = None):
    """Re-render the page the form was posted from, or the bare signup page."""
    context = section_context(form, next_path)
    renderer, view_args = _page_for(context["next_path"])
    html = renderer(context, **view_args) if renderer else None
    if html is None:
        html = render_template("signup.html", **context)
    return html, code


def _load_posted_form(variant: Variant) -> LeadCaptureForm:
    """Rebuild the form from a POST; posted values replace the defaults."""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise SignupError("Expected a JSON object.")
        preselected = data.get("preselectedCourse") or ""
        if not isinstance(preselected, str):
            raise SignupError("preselectedCourse must be a string.")
    else:
        data = None
        preselected = request.form.get("preselectedCourse") or ""

    form = LeadCaptureForm(variant, preselected_course=preselected)
    form.mount()
    for wire in form.editable_fields():
        if data is not None:
            if wire not in data:
                continue
            value = data.get(wire)
        elif wire == "province":
            value = request.form.getlist("province")
        elif wire == "privacyAccepted":
            value = request.form.get("privacyAccepted")
        else:
            value = request.form.get(wire, "")
        form.update(wire, value)
    return form


# ───────────────────────────────────────────────────────────────
# Views
# ───────────────────────────────────────────────────────────────
@signup_bp.get("/", strict_slashes=False)
def training_page():
    course = (request.args.get("course") or "").strip()
    if course and not is_known_course(course):
        course = ""
    form = build_form(Variant.TRAINING, preselected_course=course)
    form.status = status_from_query()
    return _render_section_page(form)


@signup_bp.get("/team")
def team_page():
    form = build_form(Variant.TEAM)
    form.status = status_from_query()
    return _render_section_page(form)


@signup_bp.post("/preselect")
def preselect_training_date():
    """Hero "Direct aanmelden": remember the chosen date, jump to the form."""
    HandoffSlot(session).offer(request.form.get("trainingDate"))
    target = _safe_next(request.form.get("next"), url_for("signup.training_page"))
    parsed = urlparse(target)
    return redirect(urlunparse(parsed._replace(fragment=SECTION_ANCHOR)))


@signup_bp.post("/<variant>/submit")
def submit(variant: str):
    try:
        parsed_variant = Variant.parse(variant)
    except SignupError:
        abort(404)

    wants_json = _wants_json_response()
    next_path = _safe_next(
        request.form.get("next") if not request.is_json else None,
        url_for("signup.team_page" if parsed_variant is Variant.TEAM else "signup.training_page"),
    )

    try:
        form = _load_posted_form(parsed_variant)
    except SignupError as exc:
        log.warning("Rejected malformed signup post: %s", exc)
        if wants_json:
            return jsonify({"success": False, "errors": [str(exc)]}), 400
        abort(400)

    # Tag buttons re-render the form with the province set changed.
    if not request.is_json:
        toggled = request.form.get("toggle")
        removed = request.form.get("remove")
        try:
            if toggled:
                form.toggle_province(toggled)
                return _render_section_page(form, next_path=next_path)
            if removed:
                form.remove_province(removed)
                return _render_section_page(form, next_path=next_path)
        except SignupError:
            abort(400)

    try:
        status = form.submit(_submission_sender())
    except FormValidationError as exc:
        if wants_json:
            return jsonify({"success": False, "errors": [exc.message], "field": exc.field_name}), 400
        flash(exc.message, "alert")
        return _render_section_page(form, code=400, next_path=next_path)

    if status is SubmissionStatus.SUCCESS:
        if wants_json:
            return jsonify({"success": True, "status": status.value}), 200
        return redirect(_with_query(next_path, status="sent"))

    if wants_json:
        return jsonify({"success": False, "status": status.value, "contact_phone": course_settings.CONTACT_PHONE}), 502
    return _render_section_page(form, next_path=next_path)
