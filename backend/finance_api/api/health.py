# finance_api/api/health.py
from fastapi import APIRouter
from finance_api.schemas.simple import Health

router = APIRouter(tags=["health"])

@router.get('/health', response_model=Health)
def health():
    return {'status': 'ok'}
