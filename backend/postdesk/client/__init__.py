"""
PostDesk — Page Client
========================

Python counterpart of the browser front-end: the form state machine
(form.py), visit history with the Back/Cancel rule (navigation.py) and an
httpx client that speaks the JSON page protocol (session.py).
"""

from postdesk.client.form import FormState, FormStatus
from postdesk.client.session import FormSession, PostDeskClient, PostListing

__all__ = ["FormSession", "FormState", "FormStatus", "PostDeskClient", "PostListing"]
