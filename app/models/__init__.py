from .user import User, UserRole
from .room_type import RoomType
from .booking import Booking, BookingStatus
from .rules import BlackoutDate, MinimumStayRule
from .activity_log import ActivityLog
