from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, BigInteger
from assetdepot.core.base import Base, TimestampedMixin

class Asset(Base, TimestampedMixin):
    # "hash" is the storage key inside the transport and the scratch file name.
    hash: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    ext: Mapped[str | None] = mapped_column(String(32), nullable=True)  # lowercase, no leading dot
    name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    transport: Mapped[str | None] = mapped_column(String(32), nullable=True)  # pinned at commit: local, s3

    # fetch server-side timestamps on flush; async sessions can't lazy-load them later
    __mapper_args__ = {"eager_defaults": True}
