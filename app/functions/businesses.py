from mangum import Mangum

from app.main import build_app
from app.routers.businesses import router

app = build_app([router], title="Buy Locals API - businesses")
handler = Mangum(app, lifespan="off")
