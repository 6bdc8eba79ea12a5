# Smart Parking — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.user import User                # noqa
from app.models.slot import Slot                # noqa
from app.models.booking import Booking          # noqa
from app.models.payment import Payment          # noqa
from app.models.system_log import SystemLog     # noqa
