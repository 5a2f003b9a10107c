from aws_cdk import aws_cognito as cognito
from constructs import Construct

from infra.config import PlatformConfig

MFA_MODES = {
    "off": cognito.Mfa.OFF,
    "optional": cognito.Mfa.OPTIONAL,
    "required": cognito.Mfa.REQUIRED,
}


class Identity(Construct):
    """Customer user pool and the app client the storefront signs in with."""

    def __init__(self, scope: Construct, construct_id: str, *, config: PlatformConfig) -> None:
        super().__init__(scope, construct_id)
        settings = config.identity

        mfa = MFA_MODES[settings.mfa]
        self.user_pool = cognito.UserPool(
            self, "CustomerUserPool",
            self_sign_up_enabled=True,
            sign_in_aliases=cognito.SignInAliases(email=True),
            mfa=mfa,
            # TOTP only, so no SMS role is created
            mfa_second_factor=(
                cognito.MfaSecondFactor(otp=True, sms=False) if mfa != cognito.Mfa.OFF else None
            ),
            password_policy=cognito.PasswordPolicy(
                min_length=settings.password_min_length,
                require_lowercase=True,
                require_uppercase=True,
                require_digits=True,
                require_symbols=settings.require_symbols,
            ),
            account_recovery=cognito.AccountRecovery.EMAIL_ONLY,
            removal_policy=config.removal_policy,
        )

        self.user_pool_client = self.user_pool.add_client(
            "CustomerAppClient",
            auth_flows=cognito.AuthFlow(user_password=True, user_srp=True),
            prevent_user_existence_errors=True,
        )
