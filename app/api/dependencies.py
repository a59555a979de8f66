from fastapi import Request

from app.core.config import Settings
from app.services.mpesa import MpesaClient


def get_settings(request: Request) -> Settings:
    """Settings the application was started with"""
    return request.app.state.settings


def get_mpesa_client(request: Request) -> MpesaClient:
    """Shared gateway client built at startup"""
    return request.app.state.mpesa_client
