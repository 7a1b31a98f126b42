from app.repositories.base import BaseRepository
from app.repositories.business_repository import BusinessRepository
from app.repositories.user_repository import UserRepository
