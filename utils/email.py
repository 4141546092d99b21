# utils/email.py
import logging

import requests

from config import APP_BASE_URL, BREVO_API_KEY, INVITATION_EXPIRY_DAYS

logger = logging.getLogger(__name__)

ROLE_LABELS = {
     "OWNER": "Owner",
     "PROPERTY_MANAGER": "Property Manager",
     "LEASING_AGENT": "Leasing Agent",
     "MAINTENANCE_COORDINATOR": "Maintenance Coordinator",
     "VIEWER": "Viewer",
}


def send_invitation_email(to_email: str, property_name: str, role: str, invitation_id: str) -> bool:
     """
     Deliver an invitation link through Brevo.

     Returns False when delivery is not configured; raises when Brevo rejects the request.
     """
     if not BREVO_API_KEY:
          logger.warning("BREVO_API_KEY is not set; invitation %s not e-mailed", invitation_id)
          return False

     accept_url = f"{APP_BASE_URL}/invitations/{invitation_id}"
     response = requests.post(
          "https://api.brevo.com/v3/smtp/email",
          headers={
               "api-key": BREVO_API_KEY,
               "Content-Type": "application/json",
          },
          json={
               "sender": {"name": "CondoEase", "email": "noreply@condoease.me"},
               "to": [{"email": to_email}],
               "subject": f"You've been invited to manage {property_name}",
               "htmlContent": f"""
                    <h2>You've been invited to {property_name}</h2>
                    <p>Role: <strong>{ROLE_LABELS.get(role, role)}</strong></p>
                    <p><a href="{accept_url}" style="color:#F28D35">Accept invitation</a></p>
                    <p>This invitation expires in {INVITATION_EXPIRY_DAYS} days.</p>
               """,
          },
          timeout=10,
     )
     if response.status_code not in (200, 201):
          raise Exception(f"Brevo error: {response.text}")
     logger.info("Invitation %s e-mailed to %s", invitation_id, to_email)
     return True
