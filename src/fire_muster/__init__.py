"""Fire drill muster package.

Organized by feature modules (marshals, employees, drills, attendance, ...)
with a thin Flask controller layer over service/repository layers, plus an
in-process change feed that keeps every connected marshal's view in step.
"""
