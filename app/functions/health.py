from mangum import Mangum

from app.main import build_app
from app.routers.health import router

app = build_app([router], title="Buy Locals API - health")
handler = Mangum(app, lifespan="off")
