"""Balance, profile and KYC tools."""

import json
from typing import Any

from .base import AuthenticatedTool, ToolName
from .formatting import (
    format_amount,
    format_date,
    format_timestamp,
    join_lines,
    mask_account,
    page_summary,
)

EMAIL_PARAM = {"type": "string", "description": "The user's email"}


class BalanceTool(AuthenticatedTool):
    """Account balance and transaction history."""

    @property
    def name(self) -> ToolName:
        return ToolName.BALANCE

    @property
    def description(self) -> str:
        return "Check user's account balance or transaction history"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "email": EMAIL_PARAM,
                "type": {
                    "type": "string",
                    "description": "Type of information to retrieve (balance or transactionHistory)",
                    "enum": ["balance", "transactionHistory"],
                },
            },
            "required": ["email", "type"],
        }

    def failure_context(self, *args: Any) -> str:
        if len(args) > 1 and args[1] == "transactionHistory":
            return "Failed to fetch transaction history"
        return "Failed to fetch balance"

    async def run(self, email: str, info_type: str | None = "balance") -> str:
        session = self.require_session(email)
        if info_type == "transactionHistory":
            return await self._transaction_history(session.access_token)

        balance = await self.platform.get("/api/wallet/balance", token=session.access_token)
        return (
            "Your current balance:\n"
            f"Total: ${format_amount(balance['total'])}\n"
            f"Available: ${format_amount(balance['available'])}\n"
            f"Currency: {balance['currency']}\n"
            f"Last Updated: {format_timestamp(balance.get('lastUpdated'))}"
        )

    async def _transaction_history(self, token: str | None) -> str:
        payload = await self.platform.get("/api/transactions", token=token)
        transactions = payload["data"]
        if not transactions:
            return "No transactions found in your history."

        entries = []
        for tx in transactions:
            fee = tx.get("totalFee") or "0"
            status = tx["status"].upper()
            if tx.get("externalStatus"):
                status += f" ({tx['externalStatus']})"
            entries.append(join_lines(
                f"[{format_timestamp(tx['createdAt'])}] {tx['type'].upper()} - {tx['status'].upper()}",
                f"Amount: {format_amount(tx['fromAmount'])} {tx['fromCurrency']} -> "
                f"{format_amount(tx['toAmount'])} {tx['toCurrency']}",
                f"Fee: {format_amount(fee)} {tx.get('feeCurrency', '')}" if float(fee) else "",
                f"From: {mask_account(tx.get('fromAccount'))}",
                f"To: {mask_account(tx.get('toAccount'))}",
                f"Deposit URL: {tx['depositUrl']}" if tx.get("depositUrl") else "",
                f"Transaction Hash: {tx['transactionHash']}" if tx.get("transactionHash") else "",
                f"Status: {status}",
                f"ID: {tx['id']}",
            ))

        return (
            "Your transaction history:\n\n"
            + "\n\n".join(entries)
            + f"\n\n{page_summary(payload)}\n\n"
            "Note: For bank accounts, only the last 4 digits are shown for security."
        )


class ProfileTool(AuthenticatedTool):
    """User profile plus the raw account list."""

    failure_message = "Failed to fetch profile"

    @property
    def name(self) -> ToolName:
        return ToolName.PROFILE

    @property
    def description(self) -> str:
        return "Get user's profile information"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"email": EMAIL_PARAM},
            "required": ["email"],
        }

    async def run(self, email: str) -> str:
        session = self.require_session(email)
        profile = await self.platform.get("/api/auth/me", token=session.access_token)
        accounts = await self.platform.get("/api/accounts", token=session.access_token)

        return (
            "Profile Information:\n"
            f"Name: {profile.get('firstName', '')} {profile.get('lastName', '')}\n"
            f"Email: {profile['email']}\n"
            f"Role: {profile.get('role')}\n"
            f"Status: {profile.get('status')}\n"
            f"Wallet Address: {profile.get('walletAddress')}\n"
            f"Wallet Type: {profile.get('walletAccountType')}\n\n"
            f"Accounts:\n{json.dumps(accounts, indent=2)}"
        )


_KYC_IN_REVIEW = {
    "pending": "Your KYC application is pending review.",
    "submitted": "Your KYC application has been submitted.",
}


class KYCTool(AuthenticatedTool):
    """Reports KYC status, or opens a new application."""

    failure_message = "Failed to process KYC"

    @property
    def name(self) -> ToolName:
        return ToolName.KYC

    @property
    def description(self) -> str:
        return "Check user's KYC status or start a new KYC application"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "email": EMAIL_PARAM,
                "nationality": {
                    "type": "string",
                    "description": "User's nationality (e.g., US, GB)",
                },
                "country": {
                    "type": "string",
                    "description": "User's country of residence (e.g., US, UK)",
                },
            },
            "required": ["email"],
        }

    async def run(
        self,
        email: str,
        nationality: str | None = None,
        country: str | None = None,
    ) -> str:
        session = self.require_session(email)
        token = session.access_token
        account_email = session.user.get("email", email)

        status = await self.platform.get(f"/api/kycs/status/{account_email}", token=token)
        if status.get("status") == "approved":
            return self._format_approved(status)

        kycs = await self.platform.get("/api/kycs", token=token)
        existing = next(
            (
                kyc for kyc in kycs.get("data", [])
                if (kyc.get("kycDetail") or {}).get("email") == account_email
            ),
            None,
        )
        if existing is not None:
            rendered = self._format_existing(existing)
            if rendered:
                return rendered

        if not nationality or not country:
            return (
                "Please provide your nationality and country of residence to proceed "
                "with KYC verification.\nExample: nationality US, country US"
            )

        created = await self.platform.post(
            "/api/kycs",
            {
                "type": "individual",
                "country": country.upper(),
                "kycDetail": {
                    "firstName": session.user.get("firstName"),
                    "lastName": session.user.get("lastName"),
                    "email": account_email,
                    "nationality": nationality.upper(),
                    "uboType": "owner",
                },
            },
            token=token,
        )
        return (
            "New KYC application created successfully!\n"
            f"Application ID: {created['id']}\n\n"
            "Please complete your KYC verification by clicking the link below:\n"
            f"{created['kycDetail']['kycUrl']}\n\n"
            "Note: This link will expire in 24 hours."
        )

    def _format_approved(self, status: dict[str, Any]) -> str:
        return (
            "KYC Status Information:\n"
            f"Status: {status['status'].upper()}\n"
            f"Verification Level: {status.get('level')}\n"
            f"Verified On: {format_date(status.get('verificationDate'))}\n"
            f"Expires On: {format_date(status.get('expiryDate'))}\n"
            f"Documents Verified: {', '.join(status.get('documents') or [])}\n\n"
            "Your account is fully verified and has no trading restrictions."
        )

    def _format_existing(self, kyc: dict[str, Any]) -> str | None:
        """Render an existing application; None for statuses that allow a new one."""
        detail = kyc.get("kycDetail") or {}
        verification = detail.get("currentKycVerification") or {}
        header = join_lines(
            f"Application ID: {kyc['id']}",
            f"Submitted On: {format_timestamp(kyc.get('createdAt'))}",
            f"Last Updated: {format_timestamp(kyc.get('updatedAt'))}",
            f"Type: {kyc.get('type')}",
            f"Country: {kyc.get('country')}",
            f"Provider: {kyc.get('kycProviderCode')}",
        )
        verification_lines = join_lines(
            f"Verification Status: {verification.get('status') or 'Not started'}",
            f"External Status: {verification.get('externalStatus') or 'N/A'}",
            f"Verified At: {format_timestamp(verification['verifiedAt'])}"
            if verification.get("verifiedAt") else "",
        )

        status = kyc.get("status")
        if status in _KYC_IN_REVIEW:
            documents = "\n".join(
                f"- {doc.get('documentType')}: {doc.get('status')}"
                for doc in detail.get("kycDocuments") or []
            )
            return (
                f"{_KYC_IN_REVIEW[status]}\n{header}\n\n{verification_lines}\n\n"
                f"Documents Status:\n{documents or 'No documents uploaded'}\n\n"
                "Please wait for our team to review your application. "
                "This typically takes 1-2 business days."
            )
        if status == "initiated":
            return (
                f"Your KYC application is in progress.\n{header}\n\n"
                "Please complete your KYC verification by clicking the link below:\n"
                f"{detail.get('kycUrl')}\n\n"
                "Note: This link will expire in 24 hours."
            )
        if status == "rejected":
            return (
                f"Your KYC application was rejected.\n{header}\n\n{verification_lines}\n\n"
                "Please contact support for more information about why your "
                "application was rejected."
            )
        return None
