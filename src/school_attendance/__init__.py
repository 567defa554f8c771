"""School Attendance package.

Backend features (users, attendance, qr_sessions, notifications) follow a
thin Flask controller layer over service/repository layers. The ``client``
modules hold the dashboard/mobile side: API client, QR issuer and scanner,
and the live notification feed.
"""
