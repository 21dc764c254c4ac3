"""
Resolution Orchestrator for registration-data lookups.

This module runs one lookup request through an explicit state machine:

    VALIDATING -> QUOTA_CHECK -> RDAP_QUERY  -> DONE
                             \\             \\-> WHOIS_FALLBACK -> DONE
                              -> WHOIS_QUERY -> DONE

Every edge taken is recorded with its cause on the result. The only path
from RDAP to WHOIS is the one allowed by should_fallback_to_whois().
"""

from datetime import datetime, timezone
from typing import Optional, Union

from .audit_logger import AuditLogger
from .auth import authenticate
from .config import AuthConfig
from .domain_validator import IdentifierValidator
from .enums import ErrorKind, LookupMode, ObjectType, ResolutionState, TransitionCause
from .exceptions import ValidationError
from .models import (
    AuthDecision,
    CallerIdentity,
    LookupRequest,
    QuotaStatus,
    ResolutionError,
    ResolutionResult,
    Transition,
)
from .quota_gate import QuotaGate
from .rdap_client import RDAPClient, RDAPError
from .rdap_parser import parse_rdap
from .whois_client import WHOISClient
from .whois_parser import parse_whois

COMPONENT = "orchestrator"

FALLBACK_NOTE = (
    "RDAP does not cover this domain suffix; the result was obtained through "
    "an automatic WHOIS lookup instead."
)
FALLBACK_FAILED_NOTE = (
    "RDAP does not cover this domain suffix; an automatic WHOIS lookup was "
    "attempted and failed."
)


def should_fallback_to_whois(object_type: Optional[ObjectType], rdap_error: Optional[RDAPError]) -> bool:
    """
    Decide whether a failed RDAP lookup is retried over WHOIS.

    Only domain lookups whose suffix RDAP reported as unknown qualify.
    """
    return (
        rdap_error is not None
        and rdap_error.domain_not_supported
        and object_type is ObjectType.DOMAIN
    )


class _Run:
    """Mutable state of one resolution."""

    def __init__(self) -> None:
        self.state = ResolutionState.VALIDATING
        self.transitions: list[Transition] = []

    def move(self, target: ResolutionState, cause: TransitionCause) -> None:
        self.transitions.append(Transition(source=self.state, target=target, cause=cause))
        self.state = target


class ResolutionOrchestrator:
    """
    Resolves one identifier over RDAP or WHOIS.

    Validation happens before the quota is touched, so malformed input never
    costs the caller a request. The returned ResolutionResult always carries
    the caller's quota status and auth decision, on failure paths too.
    """

    def __init__(
        self,
        quota_gate: QuotaGate,
        rdap_client: RDAPClient,
        whois_client: WHOISClient,
        auth_config: Optional[AuthConfig] = None,
        validator: Optional[IdentifierValidator] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            quota_gate: Gate for detail lookups
            rdap_client: RDAP aggregator client
            whois_client: WHOIS gateway client
            auth_config: Shared-secret settings (defaults to no secret)
            validator: Identifier validator
            logger: Optional audit logger
        """
        self._quota_gate = quota_gate
        self._rdap_client = rdap_client
        self._whois_client = whois_client
        self._auth_config = auth_config or AuthConfig()
        self._validator = validator or IdentifierValidator()
        self._logger = logger

    def _log_info(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.info(COMPONENT, message, data)

    def _log_warn(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.warn(COMPONENT, message, data)

    def build_request(
        self,
        mode: Union[LookupMode, str, None],
        object_type: Union[ObjectType, str, None],
        identifier: Optional[str],
    ) -> LookupRequest:
        """
        Validate raw request fields.

        Raises:
            ValidationError: If the mode, object type or identifier is invalid
        """
        if not mode:
            raise ValidationError(code="missing_mode", message="Lookup mode is required")
        try:
            lookup_mode = LookupMode(mode.lower() if isinstance(mode, str) else mode)
        except ValueError:
            raise ValidationError(
                code="invalid_mode",
                message=f"Invalid lookup mode: {mode}",
                details={"mode": mode},
            )

        lookup_type: Optional[ObjectType] = None
        if lookup_mode is LookupMode.RDAP:
            if not object_type:
                raise ValidationError(
                    code="missing_object_type",
                    message="RDAP lookups require an object type",
                )
            try:
                lookup_type = ObjectType(
                    object_type.lower() if isinstance(object_type, str) else object_type
                )
            except ValueError:
                raise ValidationError(
                    code="invalid_object_type",
                    message=f"Invalid object type: {object_type}",
                    details={"object_type": object_type},
                )

        # WHOIS lookups are domain lookups
        canonical = self._validator.normalize(identifier, lookup_type or ObjectType.DOMAIN)
        return LookupRequest(mode=lookup_mode, identifier=canonical, object_type=lookup_type)

    async def resolve(
        self,
        mode: Union[LookupMode, str, None],
        object_type: Union[ObjectType, str, None],
        identifier: Optional[str],
        caller: CallerIdentity,
    ) -> ResolutionResult:
        """
        Resolve one lookup request.

        Args:
            mode: 'rdap' or 'whois'
            object_type: RDAP object class (ignored for WHOIS)
            identifier: Raw identifier as supplied by the caller
            caller: Caller identity (source IP and optional credential)

        Returns:
            ResolutionResult, successful or carrying a classified error
        """
        run = _Run()
        auth = authenticate(caller.credential, self._auth_config)

        # VALIDATING
        try:
            request = self.build_request(mode, object_type, identifier)
        except ValidationError as e:
            run.move(ResolutionState.DONE, TransitionCause.INPUT_INVALID)
            self._log_info(
                "Rejected invalid lookup request",
                {"caller": caller.source_ip, "code": e.code, "identifier": identifier},
            )
            return ResolutionResult(
                success=False,
                quota=self._quota_gate.current(caller.source_ip, auth),
                auth=auth,
                error=ResolutionError(kind=ErrorKind.INVALID_INPUT, message=e.message),
                transitions=run.transitions,
            )
        run.move(ResolutionState.QUOTA_CHECK, TransitionCause.INPUT_VALID)

        # QUOTA_CHECK
        quota = self._quota_gate.check(caller.source_ip, auth)
        if not quota.allowed:
            run.move(ResolutionState.DONE, TransitionCause.QUOTA_DENIED)
            reset_text = datetime.fromtimestamp(quota.reset_at, timezone.utc).isoformat()
            self._log_warn(
                "Lookup quota exceeded",
                {"caller": caller.source_ip, "count": quota.count, "reset_at": quota.reset_at},
            )
            return ResolutionResult(
                success=False,
                quota=quota,
                auth=auth,
                request=request,
                error=ResolutionError(
                    kind=ErrorKind.QUOTA_EXCEEDED,
                    message=(
                        f"Rate limit exceeded: at most {quota.limit} lookups per window; "
                        f"retry after {reset_text}"
                    ),
                    reset_at=quota.reset_at,
                ),
                transitions=run.transitions,
            )

        if request.mode is LookupMode.RDAP:
            run.move(ResolutionState.RDAP_QUERY, TransitionCause.QUOTA_GRANTED_RDAP)
            return await self._rdap(run, request, quota, auth, caller)

        run.move(ResolutionState.WHOIS_QUERY, TransitionCause.QUOTA_GRANTED_WHOIS)
        return await self._whois(run, request, quota, auth, caller, note=None)

    async def _rdap(
        self,
        run: _Run,
        request: LookupRequest,
        quota: QuotaStatus,
        auth: AuthDecision,
        caller: CallerIdentity,
    ) -> ResolutionResult:
        response = await self._rdap_client.query(request.object_type, request.identifier)

        if response.success:
            run.move(ResolutionState.DONE, TransitionCause.RDAP_SUCCEEDED)
            self._log_info(
                "RDAP lookup succeeded",
                {
                    "caller": caller.source_ip,
                    "identifier": request.identifier,
                    "object_type": request.object_type.value,
                    "response_time_ms": round(response.response_time_ms, 1),
                },
            )
            return ResolutionResult(
                success=True,
                quota=quota,
                auth=auth,
                request=request,
                record=parse_rdap(response.data, request.identifier),
                source=LookupMode.RDAP,
                raw=response.data,
                transitions=run.transitions,
            )

        if should_fallback_to_whois(request.object_type, response.error):
            run.move(ResolutionState.WHOIS_FALLBACK, TransitionCause.RDAP_SUFFIX_UNSUPPORTED)
            self._log_info(
                "RDAP does not cover suffix, falling back to WHOIS",
                {"caller": caller.source_ip, "identifier": request.identifier},
            )
            return await self._whois(run, request, quota, auth, caller, note=FALLBACK_NOTE)

        error = response.error
        run.move(ResolutionState.DONE, TransitionCause.RDAP_FAILED)
        self._log_warn(
            "RDAP lookup failed",
            {
                "caller": caller.source_ip,
                "identifier": request.identifier,
                "kind": error.kind.value,
                "status_code": error.status_code,
            },
        )
        return ResolutionResult(
            success=False,
            quota=quota,
            auth=auth,
            request=request,
            source=LookupMode.RDAP,
            error=ResolutionError(
                kind=error.kind,
                message=error.message,
                status_code=error.status_code,
                source=LookupMode.RDAP,
                domain_not_supported=error.domain_not_supported,
                detail=error.upstream_detail,
            ),
            transitions=run.transitions,
        )

    async def _whois(
        self,
        run: _Run,
        request: LookupRequest,
        quota: QuotaStatus,
        auth: AuthDecision,
        caller: CallerIdentity,
        note: Optional[str],
    ) -> ResolutionResult:
        response = await self._whois_client.query(request.identifier)

        if response.success:
            run.move(ResolutionState.DONE, TransitionCause.WHOIS_SUCCEEDED)
            self._log_info(
                "WHOIS lookup succeeded",
                {
                    "caller": caller.source_ip,
                    "identifier": request.identifier,
                    "fallback": note is not None,
                    "response_time_ms": round(response.response_time_ms, 1),
                },
            )
            return ResolutionResult(
                success=True,
                quota=quota,
                auth=auth,
                request=request,
                record=parse_whois(response.raw_text, request.identifier),
                source=LookupMode.WHOIS,
                raw=response.raw_text,
                note=note,
                transitions=run.transitions,
            )

        error = response.error
        run.move(ResolutionState.DONE, TransitionCause.WHOIS_FAILED)
        self._log_warn(
            "WHOIS lookup failed",
            {
                "caller": caller.source_ip,
                "identifier": request.identifier,
                "fallback": note is not None,
                "kind": error.kind.value,
                "status_code": error.status_code,
            },
        )
        return ResolutionResult(
            success=False,
            quota=quota,
            auth=auth,
            request=request,
            source=LookupMode.WHOIS,
            note=FALLBACK_FAILED_NOTE if note else None,
            error=ResolutionError(
                kind=error.kind,
                message=error.message,
                status_code=error.status_code,
                source=LookupMode.WHOIS,
            ),
            transitions=run.transitions,
        )
