import logging
import smtplib

from flask import jsonify
from flask_jwt_extended import (
    create_access_token,
    current_user,
    jwt_required,
    set_access_cookies,
    unset_jwt_cookies,
)
from werkzeug.security import check_password_hash, generate_password_hash

from errors import BadRequest, ServiceUnavailable, Unauthorized
from routes import main, parse_body, public_user
from schemas import EmailVerificationRequest, OtpCheck, UserLogin, UserRegister
from services.verification import get_verifier, send_otp
from storage import get_storage

logger = logging.getLogger(__name__)


def login_response(user, status=200):
    response = jsonify(public_user(user))
    response.status_code = status
    set_access_cookies(response, create_access_token(identity=str(user["id"])))
    return response


@main.route("/verify-email", methods=["POST"])
def verify_email():
    body = parse_body(EmailVerificationRequest)
    if get_storage().get_user_by_email(body.email):
        raise BadRequest("Email already registered")

    code = get_verifier().issue(body.email)
    try:
        send_otp(body.email, code)
    except (smtplib.SMTPException, OSError):
        logger.exception("Could not send verification code to %s", body.email)
        raise ServiceUnavailable("Failed to send OTP")

    return jsonify({"message": "OTP sent successfully"})


@main.route("/verify-otp", methods=["POST"])
def verify_otp():
    body = parse_body(OtpCheck)
    get_verifier().check(body.email, body.otp)
    return jsonify({"message": "OTP verified successfully"})


@main.route("/register", methods=["POST"])
def register():
    body = parse_body(UserRegister)
    storage = get_storage()

    if storage.get_user_by_email(body.email):
        raise BadRequest("Email already registered")
    if storage.get_user_by_username(body.username):
        raise BadRequest("Username already taken")
    if not get_verifier().consume(body.email):
        raise BadRequest("Email not verified")

    data = body.model_dump(exclude={"password"})
    data["password_hash"] = generate_password_hash(body.password)
    user = storage.create_user(data)
    logger.info("Registered %s as %s", user["username"], user["role"])

    # new accounts are signed in straight away
    return login_response(user, 201)


@main.route("/login", methods=["POST"])
def login():
    body = parse_body(UserLogin)
    storage = get_storage()

    user = storage.get_user_by_username(body.username) or storage.get_user_by_email(body.username)
    if not user or not check_password_hash(user["password_hash"], body.password):
        raise Unauthorized("Invalid username or password")

    return login_response(user)


@main.route("/logout", methods=["POST"])
def logout():
    response = jsonify({"message": "Logged out"})
    unset_jwt_cookies(response)
    return response


@main.route("/user", methods=["GET"])
@jwt_required()
def me():
    return jsonify(public_user(current_user))
