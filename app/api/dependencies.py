from fastapi import Request

from app.services.chapa import ChapaClient


def get_chapa_client(request: Request) -> ChapaClient:
    """Chapa client owned by the application lifespan"""
    return request.app.state.chapa_client
