import logging
from typing import Any, Dict, Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.errors import DuplicateKeyError

from auth_helper import (
    TokenService,
    compare_password,
    get_token_service,
    hash_password,
    is_admin,
    require_sign_in,
)
from repositories import (
    OrderRepository,
    UserRepository,
    get_order_repository,
    get_user_repository,
)
from schemas import (
    ForgotPasswordIn,
    LoginIn,
    OrderStatus,
    OrderStatusIn,
    ProfileUpdateIn,
    RegisterIn,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6

REGISTER_REQUIRED = (
    ("name", "Name is Required"),
    ("email", "Email is Required"),
    ("password", "Password is Required"),
    ("phone", "Phone no is Required"),
    ("address", "Address is Required"),
    ("answer", "Answer is Required"),
)

FORGOT_PASSWORD_REQUIRED = (
    ("email", "Email is required"),
    ("answer", "answer is required"),
    ("newPassword", "New Password is required"),
)


# ------------- Helpers -------------

def _failure(status_code: int, message: str, error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": str(error)},
    )


def _first_missing(payload: Dict[str, Any], required) -> str:
    for field, message in required:
        if not (payload.get(field) or "").strip():
            return message
    return ""


def _public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password"}


def _normalize_email(email: str) -> Optional[str]:
    """Canonical form stored and looked up; None when the address is malformed."""
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        return None


# ------------- Routes -------------

@router.post("/register")
def register(payload: RegisterIn, users: UserRepository = Depends(get_user_repository)):
    data = payload.model_dump()
    missing = _first_missing(data, REGISTER_REQUIRED)
    if missing:
        return JSONResponse(status_code=400, content={"message": missing})
    email = _normalize_email(data["email"])
    if email is None:
        return JSONResponse(status_code=400, content={"message": "Invalid Email"})
    data["email"] = email

    already = {"success": False, "message": "Already Register please login"}
    try:
        if users.find_one({"email": data["email"]}):
            return JSONResponse(status_code=200, content=already)
        user = User(**{**data, "password": hash_password(data["password"])})
        created = users.insert(user.model_dump(mode="json"))
    except DuplicateKeyError:
        return JSONResponse(status_code=200, content=already)
    except Exception as e:
        logger.exception("Error in Registration")
        return _failure(500, "Error in Registration", e)

    logger.info("Registered user %s", created.get("_id"))
    return JSONResponse(
        status_code=201,
        content={"success": True, "message": "User Register Successfully", "user": _public_user(created)},
    )


@router.post("/login")
def login(
    payload: LoginIn,
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenService = Depends(get_token_service),
):
    if not payload.email or not payload.password:
        return JSONResponse(
            status_code=404, content={"success": False, "message": "Invalid email or password"}
        )
    try:
        email = _normalize_email(payload.email) or payload.email.strip()
        user = users.find_one({"email": email})
        if not user:
            return JSONResponse(
                status_code=404, content={"success": False, "message": "Email is not registerd"}
            )
        if not compare_password(payload.password, user.get("password", "")):
            return JSONResponse(
                status_code=400, content={"success": False, "message": "Invalid Password"}
            )
        token = tokens.sign(user["_id"])
    except Exception as e:
        logger.exception("Error in login")
        return _failure(500, "Error in login", e)

    return {
        "success": True,
        "message": "login successfully",
        "token": token,
        "user": {
            "_id": user["_id"],
            "name": user.get("name"),
            "email": user.get("email"),
            "phone": user.get("phone"),
            "address": user.get("address"),
            "role": user.get("role"),
        },
    }


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordIn, users: UserRepository = Depends(get_user_repository)):
    data = payload.model_dump()
    missing = _first_missing(data, FORGOT_PASSWORD_REQUIRED)
    if missing:
        return JSONResponse(status_code=400, content={"message": missing})
    try:
        email = _normalize_email(data["email"]) or data["email"].strip()
        user = users.find_one({"email": email, "answer": data["answer"]})
        if not user:
            return JSONResponse(
                status_code=404, content={"success": False, "message": "Wrong Email Or Answer"}
            )
        users.update_by_id(user["_id"], {"password": hash_password(data["newPassword"])})
    except Exception as e:
        logger.exception("Error resetting password")
        return _failure(500, "Something went wrong", e)

    logger.info("Password reset for user %s", user["_id"])
    return {"success": True, "message": "Password Reset Successfully"}


@router.get("/test", response_class=PlainTextResponse, dependencies=[Depends(is_admin)])
def protected_test():
    return "Protected Routes"


@router.get("/user-auth", dependencies=[Depends(require_sign_in)])
def user_auth():
    return {"ok": True}


@router.get("/admin-auth", dependencies=[Depends(is_admin)])
def admin_auth():
    return {"ok": True}


@router.put("/profile")
def update_profile(
    payload: ProfileUpdateIn,
    caller: Dict[str, Any] = Depends(require_sign_in),
    users: UserRepository = Depends(get_user_repository),
):
    try:
        user = users.find_by_id(caller["_id"])
        if not user:
            return JSONResponse(status_code=404, content={"message": "User Not Found"})
        if payload.password and len(payload.password) < MIN_PASSWORD_LENGTH:
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": "Password is required and 6 character long"},
            )
        fields = {
            "name": payload.name or user.get("name"),
            "password": hash_password(payload.password) if payload.password else user.get("password"),
            "phone": payload.phone or user.get("phone"),
            "address": payload.address or user.get("address"),
        }
        updated = users.update_by_id(user["_id"], fields)
    except Exception as e:
        logger.exception("Error While Update profile")
        return _failure(400, "Error While Update profile", e)

    return {
        "success": True,
        "message": "Profile Updated Successfully",
        "updatedUser": _public_user(updated or {}),
    }


@router.get("/orders")
def get_orders(
    caller: Dict[str, Any] = Depends(require_sign_in),
    orders: OrderRepository = Depends(get_order_repository),
):
    try:
        return orders.find_resolved({"buyer": caller["_id"]})
    except Exception as e:
        logger.exception("Error While Getting Orders")
        return _failure(500, "Error While Getting Orders", e)


@router.get("/all-orders", dependencies=[Depends(is_admin)])
def get_all_orders(orders: OrderRepository = Depends(get_order_repository)):
    try:
        return orders.find_resolved({}, newest_first=True)
    except Exception as e:
        logger.exception("Error While Getting Orders")
        return _failure(500, "Error While Getting Orders", e)


@router.put("/order-status/{order_id}", dependencies=[Depends(is_admin)])
def update_order_status(
    order_id: str,
    payload: OrderStatusIn,
    orders: OrderRepository = Depends(get_order_repository),
):
    allowed = {s.value for s in OrderStatus}
    if payload.status not in allowed:
        return JSONResponse(status_code=400, content={"success": False, "message": "Invalid order status"})
    try:
        order = orders.update_by_id(order_id, {"status": payload.status})
    except Exception as e:
        logger.exception("Error While Updating Order")
        return _failure(500, "Error While Updating Order", e)
    if order is None:
        return JSONResponse(status_code=404, content={"success": False, "message": "Order Not Found"})
    return order
