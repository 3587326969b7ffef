from fastapi import APIRouter

from translate_gateway.api.routes import translate, utils

api_router = APIRouter()
api_router.include_router(utils.router)
api_router.include_router(translate.router)
