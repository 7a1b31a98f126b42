from mangum import Mangum

from app.main import build_app
from app.routers.media import router

app = build_app([router], title="Buy Locals API - media")
# uploads vão direto para o S3 via URL assinada; aqui só chegam os JSONs
handler = Mangum(app, lifespan="off")
