"""SQLAlchemy models.

All models should be imported here so they register on the metadata.
"""

from linkhop.core.database import Base
from linkhop.models.click import Click
from linkhop.models.link import Link

__all__ = ["Base", "Click", "Link"]
