"""
utils/constants.py

Purpose: Centralized static content

- Email subjects and bodies
- Platform defaults (global settings, expense categories)
- Reference exchange rates
- Reusable identifiers

(Prevents hardcoding across the codebase)
"""

# ============================================================
# POINT OF SALE
# ============================================================

WALK_IN_CUSTOMER_ID = "walk_in"
WALK_IN_CUSTOMER_NAME = "Walk-in Customer"
DEFAULT_BRANCH_ID = "b_001"

# Creditors owing less than this are treated as settled
CREDITOR_OWED_THRESHOLD = 0.5
OUTSTANDING_CREDIT_THRESHOLD = 1.0

# ============================================================
# STOKVEL
# ============================================================

# Queue position used for members that were never placed in the rotation
UNQUEUED_POSITION = 999

# ============================================================
# EXPENSES
# ============================================================

DEFAULT_EXPENSE_CATEGORIES = ["General", "Rent", "Utilities", "Stock"]

# ============================================================
# GLOBAL SETTINGS
# ============================================================

DEFAULT_GLOBAL_SETTINGS = {
    "id": "global",
    "erp_name": "INALA HOLDINGS",
    "erp_logo_url": "",
    "primary_color": "#6366f1",
    "secondary_color": "#0ea5e9",
    "support_email": "admin@inala.holdings",
    "platform_domain": "app.inala.holdings",
    "api_keys": {},
    "system": {
        "maintenance_mode": False,
        "allow_signup": False,
        "data_retention_days": 365,
        "enable_2fa": False,
    },
}

SUPER_ADMIN_SEED = {
    "id": "u_global_01",
    "name": "Super Admin",
    "email": "admin@inala.holdings",
    "role": "SUPER_ADMIN",
    "tenant_id": "global",
    "tenant_access": [],
    "is_active": True,
}

# ============================================================
# EXCHANGE RATES (units of currency per 1 ZAR)
# ============================================================

BASE_CURRENCY = "ZAR"

REFERENCE_RATES_TO_ZAR = {
    "ZAR": 1.0,
    "MZN": 3.45,
    "USD": 0.053,
    "GBP": 0.042,
    "PLN": 0.21,
    "EUR": 0.049,
    "AUD": 0.081,
    "CAD": 0.072,
    "JPY": 7.95,
    "CNY": 0.38,
}

# ============================================================
# EMAIL
# ============================================================

WELCOME_SUBJECT = "Welcome to {app_name}!"

WELCOME_BODY = """<p>We are thrilled to have you on board. Your account has been created successfully.</p>
<p>You can now access your dashboard to manage your business or stokvel group.</p>
<a href="{app_url}" class="button">Go to Dashboard</a>"""

ACTIVATION_SUBJECT = "Activate Your Account"

ACTIVATION_BODY = """<p>Hello {name},</p>
<p>Your account requires activation. Please click the button below to verify your email and activate your account.</p>
<a href="{app_url}/activate?token={token}" class="button">Activate Account</a>"""

PASSWORD_RESET_SUBJECT = "Reset Your Password"

PASSWORD_RESET_BODY = """<p>We received a request to reset your password. Click the link below to proceed.</p>
<a href="{app_url}/reset-password?token={token}" class="button">Reset Password</a>
<p>If you did not request this, please ignore this email.</p>"""

PERMISSION_CHANGE_SUBJECT = "Account Permissions Updated"

PERMISSION_CHANGE_BODY = """<p>Your account permissions have been updated by an administrator.</p>
<p>New Role: <strong>{role}</strong></p>
<p>Please login to see the changes.</p>"""

EMAIL_LAYOUT = """<!DOCTYPE html>
<html>
<head>
<style>
  body {{ font-family: 'Helvetica Neue', Helvetica, Arial, sans-serif; background-color: #f4f4f4; margin: 0; padding: 0; }}
  .container {{ max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 8px; overflow: hidden; }}
  .header {{ background-color: #1e1b4b; padding: 20px; text-align: center; }}
  .header img {{ max-height: 50px; }}
  .content {{ padding: 30px; color: #333333; line-height: 1.6; }}
  .button {{ display: inline-block; padding: 12px 24px; background-color: #4f46e5; color: white; text-decoration: none; border-radius: 5px; font-weight: bold; margin-top: 20px; }}
  .footer {{ background-color: #f8fafc; padding: 20px; text-align: center; font-size: 12px; color: #64748b; border-top: 1px solid #e2e8f0; }}
</style>
</head>
<body>
  <div class="container">
    <div class="header">
      {header}
    </div>
    <div class="content">
      <h2 style="color: #1e1b4b; margin-top: 0;">{title}</h2>
      {body}
    </div>
    <div class="footer">
      <p>&copy; {year} {app_name}. Powered by Inala Holdings.</p>
      <p>Contact: {contact}</p>
    </div>
  </div>
</body>
</html>
"""
