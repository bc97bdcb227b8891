# Pool occupancy — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.occupancy import Occupancy  # noqa
