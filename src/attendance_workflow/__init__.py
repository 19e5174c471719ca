"""Attendance workflow package.

Organized by feature modules (attendance, requests, holidays, audit, reports)
with a thin Flask controller layer over Protocol-based service/repository layers.
"""
