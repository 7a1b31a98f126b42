from mangum import Mangum

from app.main import build_app
from app.routers.users import router

app = build_app([router], title="Buy Locals API - users")
handler = Mangum(app, lifespan="off")
