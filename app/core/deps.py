from fastapi import Request

from app.core.security import SessionIdentityProvider
from app.services.card_store import CardStore


def get_card_store(request: Request) -> CardStore:
    return request.app.state.card_store


def get_reading_repo(request: Request):
    return request.app.state.reading_repo


def get_identity_provider(request: Request) -> SessionIdentityProvider:
    return request.app.state.identity_provider


def get_captcha_verifier(request: Request):
    return request.app.state.captcha_verifier


def get_generator(request: Request):
    return request.app.state.generator
