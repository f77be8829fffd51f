"""Course enrollment WSGI service: sign-ups, course listings, cancellations and classmates."""

__version__ = "0.1.0"