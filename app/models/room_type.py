from sqlalchemy import Integer, String, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from ..db import Base

class RoomType(Base):
    __tablename__ = "room_types"
    __table_args__ = (
        CheckConstraint("total_rooms >= 0", name="ck_room_types_total_rooms"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # Bookings reference room types by this display name
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name_en: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    total_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
