# uaroute/models.py

from sqlalchemy import Column, String, Integer, DateTime
from uaroute.database import Base


class StatsGlobal(Base):
    """Global per-minute redirect counts"""
    __tablename__ = "redirect_stats_global"

    minute = Column(DateTime, primary_key=True)
    redirects = Column(Integer, default=0)
    pages = Column(Integer, default=0)
    not_found = Column(Integer, default=0)
    errors = Column(Integer, default=0)


class StatsByRoute(Base):
    __tablename__ = "redirect_stats_by_route"

    minute = Column(DateTime, primary_key=True)
    zone = Column(String(100), primary_key=True)
    route = Column(String(100), primary_key=True)
    redirects = Column(Integer, default=0)
    pages = Column(Integer, default=0)


class StatsByOsClass(Base):
    __tablename__ = "redirect_stats_by_os"

    minute = Column(DateTime, primary_key=True)
    os_class = Column(String(20), primary_key=True)
    redirects = Column(Integer, default=0)
    pages = Column(Integer, default=0)
