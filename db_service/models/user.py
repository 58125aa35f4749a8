from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index, Uuid

from db_service.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    time_zone = Column(String(100), nullable=False, default="America/New_York")
    default_forecast_horizon_days = Column(Integer, nullable=False, default=30)

    # Unicité sensible à la casse, garantie par l'index et non par l'application
    __table_args__ = (
        Index("ix_users_email", "email", unique=True),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class Setting(Base, TimestampMixin):
    """Paramètre applicatif clé/valeur propre à un utilisateur."""

    __tablename__ = "settings"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    setting_key = Column(String(255), nullable=False)
    setting_value = Column(Text, nullable=False)

    __table_args__ = (
        Index("ix_settings_user_id_setting_key", "user_id", "setting_key", unique=True),
    )
