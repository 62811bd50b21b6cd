# Keep this TINY so importing the package never drags in heavy deps.
from . import lib  # so: from modules.job_scrape import lib
from .main import run  # so: from modules.job_scrape import run

__all__ = ["lib", "run"]
