from mangum import Mangum

from app.main import build_app
from app.routers.auth import router

app = build_app([router], title="Buy Locals API - auth")
handler = Mangum(app, lifespan="off")
