import os

from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_ENV_VARIABLES = ("ENVIRONMENT", "ENV", "NODE_ENV")


def resolve_env(environ=os.environ) -> str:
    """First non-empty of ENVIRONMENT, ENV, NODE_ENV; every env check reads this."""
    for name in _ENV_VARIABLES:
        value = (environ.get(name) or "").strip().lower()
        if value:
            return value
    return "dev"


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./buy_locals.db")
ENV_NORMALIZED = resolve_env()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

# CORS
_cors_env = os.getenv("CORS_ORIGINS", os.getenv("CORS_ORIGIN", ""))
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and (IS_DEV or IS_TEST):
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://localhost:19006",
        "http://127.0.0.1:3000",
    ]

# Auth (JWT próprio ou Cognito)
DEFAULT_JWT_SECRET = "dev-only-jwt-secret"
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "") or DEFAULT_JWT_SECRET
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))
JWT_REFRESH_EXPIRE_DAYS = int(os.getenv("JWT_REFRESH_EXPIRE_DAYS", "30"))

AUTH_PROVIDER = os.getenv("AUTH_PROVIDER", "jwt").strip().lower()
if AUTH_PROVIDER not in {"jwt", "cognito"}:
    AUTH_PROVIDER = "jwt"

AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
COGNITO_USER_POOL_ID = os.getenv("COGNITO_USER_POOL_ID", "").strip()
COGNITO_CLIENT_ID = os.getenv("COGNITO_CLIENT_ID", "").strip()
COGNITO_CLIENT_SECRET = os.getenv("COGNITO_CLIENT_SECRET", "").strip()

# Object storage
S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "").strip()
S3_PUBLIC_BASE_URL = os.getenv("S3_PUBLIC_BASE_URL", "").strip().rstrip("/")
MEDIA_MAX_FILE_SIZE_MB = int(os.getenv("MEDIA_MAX_FILE_SIZE_MB", "10"))
# limite de pixels decodificados (Pillow recusa acima de 2x este valor)
MEDIA_MAX_IMAGE_PIXELS = int(os.getenv("MEDIA_MAX_IMAGE_PIXELS", "40000000"))
MAX_PHOTOS_PER_BUSINESS = int(os.getenv("MAX_PHOTOS_PER_BUSINESS", "10"))
SIGNED_URL_EXPIRES_SECONDS = int(os.getenv("SIGNED_URL_EXPIRES_SECONDS", "3600"))

# Rate limit dos endpoints /auth
AUTH_RATE_LIMIT = int(os.getenv("AUTH_RATE_LIMIT", "20"))
AUTH_RATE_WINDOW_SECONDS = int(os.getenv("AUTH_RATE_WINDOW_SECONDS", "900"))
AUTH_RATE_LIMIT_ENABLED = os.getenv("AUTH_RATE_LIMIT_ENABLED", "1").strip().lower() in _TRUE_VALUES
