# Driver Queue: Database Models
# Import all models here for SQLAlchemy discovery

from driverqueue.models.driver import Driver, DriverStatus   # noqa
