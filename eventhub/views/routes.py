"""
Server-rendered pages.

Every page talks to the domain through the Caller and owns no business
rules of its own: form posts are turned into one caller operation each and
domain errors are shown back on the page with a 400. A missing RSVP, or one
that belongs to another event than the URL names, gets the 404 error page.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from eventhub.api.caller import Caller
from eventhub.api.deps import get_auth_service, get_caller
from eventhub.auth import get_request_token
from eventhub.core.config import settings
from eventhub.core.exceptions import DomainError, NotFoundError, UnauthenticatedError
from eventhub.db.models.rsvp import RSVPStatusEnum
from eventhub.schemas import EventCreate, LoginRequest, RSVPCreate, RSVPUpdate, UserCreate
from eventhub.services.auth_service import AuthService
from eventhub.views.templating import render

router = APIRouter(include_in_schema=False)

LOGIN_URL = "/auth/login"


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"{field}: {first['msg']}" if field else first["msg"]


def parse_status(value: str) -> RSVPStatusEnum:
    try:
        return RSVPStatusEnum(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown RSVP status '{value}'")


async def event_detail_context(caller: Caller, event_id: str) -> dict:
    event = await caller.events.get_by_id(event_id)
    rsvps = await caller.rsvp.list_by_event(event_id)
    attending_count = sum(1 for r in rsvps if r.status == RSVPStatusEnum.attending)
    user_rsvp = None
    if caller.user is not None:
        user_rsvp = next((r for r in rsvps if r.user_id == caller.user.id), None)
    available_spots = None
    if event.capacity is not None:
        available_spots = max(0, event.capacity - attending_count)
    return {
        "event": event,
        "rsvps": rsvps,
        "attending_count": attending_count,
        "available_spots": available_spots,
        "user_rsvp": user_rsvp,
        "title": event.name,
    }


async def render_event_detail(request: Request, caller: Caller, event_id: str, error: Optional[str] = None):
    context = await event_detail_context(caller, event_id)
    return render(
        request,
        "event_detail.html",
        caller.user,
        status_code=400 if error else 200,
        error=error,
        **context,
    )


@router.get("/")
async def events_page(request: Request, caller: Caller = Depends(get_caller)):
    events = await caller.events.list_all()
    return render(request, "events_list.html", caller.user, events=events, title="All Events")


# Must be registered before /events/{event_id}
@router.get("/events/new")
async def new_event_form(request: Request, caller: Caller = Depends(get_caller)):
    if not caller.is_authenticated:
        return redirect(LOGIN_URL)
    return render(request, "event_form.html", caller.user, form={}, title="Create Event")


@router.post("/events/new")
async def create_event_submit(
    request: Request,
    name: str = Form(""),
    location: str = Form(""),
    date: str = Form(""),
    capacity: str = Form(""),
    caller: Caller = Depends(get_caller),
):
    if not caller.is_authenticated:
        return redirect(LOGIN_URL)

    form = {"name": name, "location": location, "date": date, "capacity": capacity}
    try:
        payload = EventCreate(
            name=name.strip(),
            location=location.strip(),
            date=date.strip(),
            capacity=capacity.strip() or None,
        )
        await caller.events.create(payload)
    except UnauthenticatedError:
        return redirect(LOGIN_URL)
    except ValidationError as e:
        error = validation_message(e)
    except DomainError as e:
        error = e.message
    else:
        return redirect("/")

    return render(request, "event_form.html", caller.user, status_code=400, form=form, error=error, title="Create Event")


@router.get("/events/{event_id}")
async def event_detail_page(request: Request, event_id: str, caller: Caller = Depends(get_caller)):
    return await render_event_detail(request, caller, event_id)


@router.post("/events/{event_id}/rsvp")
async def create_rsvp_submit(
    request: Request,
    event_id: str,
    status: str = Form(...),
    caller: Caller = Depends(get_caller),
):
    if not caller.is_authenticated:
        return redirect(LOGIN_URL)
    try:
        await caller.rsvp.create(RSVPCreate(event_id=event_id, status=parse_status(status)))
    except UnauthenticatedError:
        return redirect(LOGIN_URL)
    except HTTPException as e:
        return await render_event_detail(request, caller, event_id, error=e.detail)
    except DomainError as e:
        return await render_event_detail(request, caller, event_id, error=e.message)
    return redirect(f"/events/{event_id}")


@router.post("/events/{event_id}/rsvp/{rsvp_id}")
async def update_rsvp_submit(
    request: Request,
    event_id: str,
    rsvp_id: str,
    status: str = Form(...),
    caller: Caller = Depends(get_caller),
):
    if not caller.is_authenticated:
        return redirect(LOGIN_URL)
    try:
        await caller.rsvp.update(rsvp_id, RSVPUpdate(status=parse_status(status)), event_id=event_id)
    except UnauthenticatedError:
        return redirect(LOGIN_URL)
    except NotFoundError:
        raise
    except HTTPException as e:
        return await render_event_detail(request, caller, event_id, error=e.detail)
    except DomainError as e:
        return await render_event_detail(request, caller, event_id, error=e.message)
    return redirect(f"/events/{event_id}")


@router.post("/events/{event_id}/rsvp/{rsvp_id}/delete")
async def delete_rsvp_submit(
    request: Request,
    event_id: str,
    rsvp_id: str,
    caller: Caller = Depends(get_caller),
):
    if not caller.is_authenticated:
        return redirect(LOGIN_URL)
    try:
        await caller.rsvp.delete(rsvp_id, event_id=event_id)
    except UnauthenticatedError:
        return redirect(LOGIN_URL)
    except NotFoundError:
        raise
    except DomainError as e:
        return await render_event_detail(request, caller, event_id, error=e.message)
    return redirect(f"/events/{event_id}")


@router.get("/my-events")
async def my_events_page(request: Request, caller: Caller = Depends(get_caller)):
    if not caller.is_authenticated:
        return redirect(LOGIN_URL)
    events = await caller.events.list_created_by_current_user()
    return render(request, "my_events.html", caller.user, events=events, title="My Events")


@router.get("/my-rsvps")
async def my_rsvps_page(request: Request, caller: Caller = Depends(get_caller)):
    if not caller.is_authenticated:
        return redirect(LOGIN_URL)
    rsvps = await caller.rsvp.list_mine()
    return render(request, "my_rsvps.html", caller.user, rsvps=rsvps, title="My RSVPs")


def signed_in_redirect(access_token: str) -> RedirectResponse:
    response = redirect("/")
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/auth/login")
async def login_page(request: Request):
    return render(request, "auth_login.html", form={}, title="Login")


@router.post("/auth/login")
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        tokens = await auth_service.login(LoginRequest(email=email, password=password))
    except ValidationError as e:
        error = validation_message(e)
    except HTTPException as e:
        error = e.detail
    else:
        return signed_in_redirect(tokens["access_token"])
    return render(request, "auth_login.html", status_code=400, form={"email": email}, error=error, title="Login")


@router.get("/auth/signup")
async def signup_page(request: Request):
    return render(request, "auth_signup.html", form={}, title="Sign Up")


@router.post("/auth/signup")
async def signup_submit(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        await auth_service.register(UserCreate(name=name.strip(), email=email, password=password))
        tokens = await auth_service.login(LoginRequest(email=email, password=password))
    except ValidationError as e:
        error = validation_message(e)
    except HTTPException as e:
        error = e.detail
    else:
        return signed_in_redirect(tokens["access_token"])
    return render(
        request,
        "auth_signup.html",
        status_code=400,
        form={"name": name, "email": email},
        error=error,
        title="Sign Up",
    )


@router.get("/auth/logout")
async def logout(
    token: Optional[str] = Depends(get_request_token),
    auth_service: AuthService = Depends(get_auth_service),
):
    if token:
        await auth_service.logout(token)
    response = redirect("/")
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
