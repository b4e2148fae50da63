"""Remote Work Application System package.

Feature modules (users, applications, notifications, audit, personnel,
analytics) each keep a thin Flask controller on top of service and
repository layers. The HTTP surface is JSON only.
"""
