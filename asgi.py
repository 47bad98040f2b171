"""
ASGI entry point.

Run with:
    uvicorn asgi:app --reload

Routes are added by the embedding project; protect them with
``Depends(hcaptcha_verdict)`` or wrap a sub-app in HCaptchaMiddleware.
"""

from app import create_app

app = create_app()
