from app.models.user import User
from app.models.business import Business
