"""HTTP routes for authentication."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from authkit.api.base import success_response
from authkit.api.middleware import current_payload, require_roles
from authkit.service import AccountService
from authkit.types import (
    AccountStatus,
    ChangeDisplayNameRequest,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    SessionPayload,
)

NEUTRAL_EMAIL_MESSAGE = "If the address is registered, an email is on its way"


def create_auth_router(service: AccountService, admin_role: str = "admin") -> APIRouter:
    """Create auth router with injected service.

    Errors propagate as AuthError and are rendered by the handlers from
    ``register_error_handlers``.
    """
    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post("/register", status_code=201)
    async def register(body: RegisterRequest):
        """Create a pending account and send the verification email."""
        account = service.register(body)
        return JSONResponse(
            status_code=201,
            content=success_response(account.model_dump(mode="json")).model_dump(mode="json"),
        )

    @router.post("/login")
    async def login(body: LoginRequest):
        """Exchange credentials for a session token."""
        result = service.login(body)
        return success_response(result.model_dump(mode="json"))

    @router.get("/verify-email")
    async def verify_email(token: str = Query(..., min_length=1)):
        account = service.verify_email(token)
        return success_response({
            "message": f"Email for {account.email} successfully verified.",
            "account": account.model_dump(mode="json"),
        })

    @router.post("/resend-verification")
    async def resend_verification(body: ResendVerificationRequest):
        service.resend_verification(body.email)
        return success_response({"message": NEUTRAL_EMAIL_MESSAGE})

    @router.post("/forgot-password")
    async def forgot_password(body: ForgotPasswordRequest):
        service.request_password_reset(body.email)
        return success_response({"message": NEUTRAL_EMAIL_MESSAGE})

    @router.post("/reset-password")
    async def reset_password(body: ResetPasswordRequest):
        service.reset_password(body.token, body.new_password)
        return success_response({"message": "Password has been reset. Please login again."})

    @router.post("/logout")
    async def logout(request: Request, payload: SessionPayload = Depends(current_payload)):
        """Logout - clear the active session if it is this one."""
        service.logout(payload, request.state.session_token)
        return success_response({"message": "Logged out successfully"})

    @router.get("/me")
    async def me(payload: SessionPayload = Depends(current_payload)):
        """Get current authenticated account."""
        account = service.get_account(payload.account_id)
        return success_response(account.model_dump(mode="json"))

    @router.post("/change-password")
    async def change_password(
        body: ChangePasswordRequest,
        payload: SessionPayload = Depends(current_payload),
    ):
        service.change_password(payload.account_id, body.old_password, body.new_password)
        return success_response({"message": "Password changed. Please login again."})

    @router.post("/change-name")
    async def change_name(
        body: ChangeDisplayNameRequest,
        payload: SessionPayload = Depends(current_payload),
    ):
        account = service.change_display_name(payload.account_id, body.display_name)
        return success_response(account.model_dump(mode="json"))

    @router.post("/accounts/{account_id}/status/{status}")
    async def change_status(
        account_id: UUID,
        status: AccountStatus,
        _admin: SessionPayload = Depends(require_roles(admin_role)),
    ):
        """Administrative lifecycle change (suspend, reinstate, delete)."""
        account = service.change_status(account_id, status)
        return success_response(account.model_dump(mode="json"))

    return router
