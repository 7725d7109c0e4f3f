# Repositories package init
"""
PostDesk — Data Access Layer
==============================

SQLAlchemy queries for each model, one repository per table. Repositories
flush but never commit; the request's session dependency owns the transaction.
"""
