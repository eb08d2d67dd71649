"""
Notification Management Module
Emails the operations mailbox when a catering invoice is created. Sending is
best-effort: every outcome is returned as a result dict, nothing is raised.
"""

import html
import logging
from datetime import datetime, timezone

import resend

from invoice_manager import customer_display_name, format_long_date
from money_utils import format_currency

logger = logging.getLogger(__name__)

NOT_CONFIGURED_ERROR = 'RESEND_API_KEY not configured'


class EmailTemplate:
    """Email template constants"""

    INVOICE_CREATED_SUBJECT = "New Catering Invoice: {customer_name} - {event_date}"


def _escape(value, default='Not provided'):
    return html.escape(str(value)) if value else default


class NotificationManager:
    """Sends operator notifications through Resend"""

    def __init__(self, config, email_client=None, now=None):
        self.config = config
        self._email_client = email_client
        self.now = now or (lambda: datetime.now(timezone.utc))

    @property
    def email_client(self):
        if self._email_client is None:
            resend.api_key = self.config.resend_api_key
            self._email_client = resend.Emails
        return self._email_client

    def build_invoice_created_email(self, invoice, customer_data, order):
        """
        Subject and HTML body for the invoice-created notification

        Returns:
            tuple: (subject, html_body)
        """
        invoice = invoice or {}
        customer_data = customer_data or {}
        order = order or {}

        customer_name = customer_display_name(
            customer_data.get('givenName'),
            customer_data.get('familyName'),
            default='Guest Customer'
        )
        event_date = format_long_date(invoice.get('sale_or_service_date'))

        total_money = order.get('total_money') or {}
        total_amount = format_currency(total_money['amount']) if total_money.get('amount') is not None else 'TBD'

        dashboard = self.config.dashboard_url
        invoice_id = invoice.get('id', '')
        invoice_url = f"{dashboard}/sales/invoices/{invoice_id}"
        customer_url = f"{dashboard}/customers/{customer_data.get('id') or ''}"
        order_url = f"{dashboard}/orders/{order.get('id') or ''}"

        subject = EmailTemplate.INVOICE_CREATED_SUBJECT.format(customer_name=customer_name, event_date=event_date)

        html_body = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <title>New Catering Invoice Created</title>
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .header {{ background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin-bottom: 20px; }}
            .section {{ margin-bottom: 20px; }}
            .label {{ font-weight: bold; color: #555; }}
            .value {{ margin-left: 10px; }}
            .highlight {{ background-color: #fff3cd; padding: 15px; border-radius: 5px; border-left: 4px solid #ffc107; }}
            .action-button {{ display: inline-block; background-color: #007bff; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; margin: 10px 0; font-weight: bold; }}
            .urgent {{ background-color: #f8d7da; border-left: 4px solid #dc3545; }}
            .footer {{ margin-top: 30px; padding-top: 20px; border-top: 1px solid #eee; font-size: 12px; color: #666; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h2>🎉 New Catering Invoice Created</h2>
                <p>A new catering invoice has been created and requires your attention.</p>
            </div>

            <div class="section">
                <h3>📋 Invoice Details</h3>
                <p><span class="label">Invoice ID:</span><span class="value">{_escape(invoice_id, 'N/A')}</span></p>
                <p><span class="label">Invoice Title:</span><span class="value">{_escape(invoice.get('title'), 'N/A')}</span></p>
                <p><span class="label">Total Amount:</span><span class="value">{total_amount}</span></p>
                <p><span class="label">Status:</span><span class="value">Draft</span></p>
            </div>

            <div class="section">
                <h3>👤 Customer Information</h3>
                <p><span class="label">Name:</span><span class="value">{_escape(customer_name)}</span></p>
                <p><span class="label">Email:</span><span class="value">{_escape(customer_data.get('emailAddress'))}</span></p>
                <p><span class="label">Phone:</span><span class="value">{_escape(customer_data.get('phoneNumber'))}</span></p>
                <p><span class="label">Customer ID:</span><span class="value">{_escape(customer_data.get('id'), 'N/A')}</span></p>
            </div>

            <div class="section">
                <h3>📅 Event Information</h3>
                <p><span class="label">Event Date:</span><span class="value">{_escape(event_date)}</span></p>
                <p><span class="label">Order ID:</span><span class="value">{_escape(order.get('id'), 'N/A')}</span></p>
            </div>

            <div class="highlight urgent">
                <h3>🚨 ACTION REQUIRED</h3>
                <p><strong>Please review and approve this invoice:</strong></p>
                <a href="{invoice_url}" class="action-button" target="_blank">📋 View Invoice in Square Dashboard</a>
                <p style="margin-top: 15px;"><strong>Next Steps:</strong></p>
                <ol>
                    <li><strong>Review</strong> the invoice details in Square Dashboard</li>
                    <li><strong>Approve</strong> the invoice if everything looks correct</li>
                    <li><strong>Send</strong> the invoice to the customer</li>
                    <li><strong>Follow up</strong> with the customer regarding payment</li>
                </ol>
            </div>

            <div class="section">
                <h3>🔗 Quick Links</h3>
                <p><a href="{invoice_url}" target="_blank">📋 View Invoice in Square</a></p>
                <p><a href="{customer_url}" target="_blank">👤 View Customer Profile</a></p>
                <p><a href="{order_url}" target="_blank">📦 View Order Details</a></p>
            </div>

            <div class="footer">
                <p>This notification was sent automatically by the KC Kitchen catering system.</p>
                <p>Invoice created at: {self.now():%Y-%m-%d %H:%M:%S %Z}</p>
            </div>
        </div>
    </body>
    </html>
    """
        return subject, html_body

    def send_invoice_created_notification(self, invoice, customer_data, order):
        """
        Notify the operations mailbox about a new invoice

        Returns:
            dict: {'success': True, 'emailId', 'message'} when sent;
            {'success': False, 'error', 'message'} when skipped or failed
            (skipped results also carry 'skipped': True)
        """
        invoice_id = (invoice or {}).get('id')
        if not self.config.email_configured:
            logger.warning(f"Resend not configured - skipping email notification for invoice {invoice_id}")
            return {
                'success': False,
                'skipped': True,
                'error': NOT_CONFIGURED_ERROR,
                'message': 'Email notifications are not configured. Please add RESEND_API_KEY to your environment variables.'
            }

        try:
            subject, html_body = self.build_invoice_created_email(invoice, customer_data, order)
            params = {
                'from': self.config.notification_from_email,
                'to': list(self.config.notification_to_emails),
                'subject': subject,
                'html': html_body
            }
            logger.info(f"Sending notification email for invoice {invoice_id} to {params['to']}")

            response = self.email_client.send(params)
            email_id = response['id']

            logger.info(f"Notification email sent for invoice {invoice_id}. Email id: {email_id}")
            return {
                'success': True,
                'emailId': email_id,
                'message': 'Notification email sent successfully'
            }

        except Exception as e:
            logger.error(f"Failed to send notification email for invoice {invoice_id}: {str(e)}")
            return {
                'success': False,
                'error': str(e),
                'message': 'Failed to send notification email'
            }


def get_notification_manager(config):
    """Factory function to get NotificationManager instance"""
    return NotificationManager(config)
