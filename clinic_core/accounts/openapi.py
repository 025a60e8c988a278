from drf_spectacular.extensions import OpenApiAuthenticationExtension


class ClinicJWTAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "clinic_core.accounts.authentication.ClinicJWTAuthentication"
    name = "BearerJWT"

    def get_security_definition(self, auto_schema):
        return {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Send the access token from /auth/login/ as `Authorization: Bearer <token>`.",
        }
