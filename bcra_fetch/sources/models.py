"""BCRA API payload models."""

from pydantic import BaseModel, ConfigDict, Field


class BCRAModel(BaseModel):
    """Base model accepting both upstream (camelCase) and field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BCRAVariable(BCRAModel):
    """A single monetary statistic observation."""

    id_variable: int | None = Field(default=None, alias="idVariable")
    descripcion: str | None = None
    categoria: str | None = None
    fecha: str
    valor: float


class ResultSet(BCRAModel):
    """Pagination metadata for series responses."""

    count: int | None = None
    offset: int | None = None
    limit: int | None = None


class ResponseMetadata(BCRAModel):
    resultset: ResultSet | None = None


class BCRAResponse(BCRAModel):
    """Monetary statistics response (snapshot or series)."""

    status: int
    results: list[BCRAVariable]
    metadata: ResponseMetadata | None = None

    def by_id(self, variable_id: int) -> BCRAVariable | None:
        """Find the observation for a variable in a snapshot."""
        for variable in self.results:
            if variable.id_variable == variable_id:
                return variable
        return None


# === Central de Deudores ===


class DebtEntity(BCRAModel):
    entidad: str | None = None
    situacion: int | None = None
    fecha_sit1: str | None = Field(default=None, alias="fechaSit1")
    monto: float | None = None
    dias_atraso_pago: int | None = Field(default=None, alias="diasAtrasoPago")
    refinanciaciones: bool = False
    recategorizacion_oblig: bool = Field(default=False, alias="recategorizacionOblig")
    situacion_juridica: bool = Field(default=False, alias="situacionJuridica")
    irrec_disposicion_tecnica: bool = Field(default=False, alias="irrecDisposicionTecnica")
    en_revision: bool = Field(default=False, alias="enRevision")
    proceso_jud: bool = Field(default=False, alias="procesoJud")


class DebtPeriod(BCRAModel):
    periodo: str | None = None
    entidades: list[DebtEntity] | None = None


class Debt(BCRAModel):
    identificacion: int
    denominacion: str | None = None
    periodos: list[DebtPeriod] | None = None


class DebtResponse(BCRAModel):
    """Current debt situation of a debtor."""

    status: int
    results: Debt


class DebtHistoryResponse(BCRAModel):
    """Historical debt situation of a debtor (24 months)."""

    status: int
    results: Debt


class RejectedCheckDetail(BCRAModel):
    nro_cheque: int = Field(alias="nroCheque")
    fecha_rechazo: str = Field(alias="fechaRechazo")
    monto: float
    fecha_pago: str | None = Field(default=None, alias="fechaPago")
    fecha_pago_multa: str | None = Field(default=None, alias="fechaPagoMulta")
    estado_multa: str | None = Field(default=None, alias="estadoMulta")
    cta_personal: bool = Field(default=False, alias="ctaPersonal")
    denom_juridica: str | None = Field(default=None, alias="denomJuridica")
    en_revision: bool = Field(default=False, alias="enRevision")
    proceso_jud: bool = Field(default=False, alias="procesoJud")


class RejectedCheckEntity(BCRAModel):
    entidad: int | None = None
    detalle: list[RejectedCheckDetail] | None = None


class RejectedCheckCause(BCRAModel):
    causal: str | None = None
    entidades: list[RejectedCheckEntity] | None = None


class RejectedChecks(BCRAModel):
    identificacion: int
    denominacion: str | None = None
    causales: list[RejectedCheckCause] | None = None


class RejectedChecksResponse(BCRAModel):
    """Rejected checks registered against a debtor."""

    status: int
    results: RejectedChecks
