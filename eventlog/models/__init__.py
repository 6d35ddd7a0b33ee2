# Import all models so Base.metadata knows every table before create_all

from eventlog.models.event_log import EventLog
