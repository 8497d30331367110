from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

UF_CHOICES = [
    ('AC', 'Acre'), ('AL', 'Alagoas'), ('AP', 'Amapá'), ('AM', 'Amazonas'), ('BA', 'Bahia'),
    ('CE', 'Ceará'), ('DF', 'Distrito Federal'), ('ES', 'Espírito Santo'), ('GO', 'Goiás'),
    ('MA', 'Maranhão'), ('MT', 'Mato Grosso'), ('MS', 'Mato Grosso do Sul'),
    ('MG', 'Minas Gerais'), ('PA', 'Pará'), ('PB', 'Paraíba'), ('PR', 'Paraná'),
    ('PE', 'Pernambuco'), ('PI', 'Piauí'), ('RJ', 'Rio de Janeiro'),
    ('RN', 'Rio Grande do Norte'), ('RS', 'Rio Grande do Sul'), ('RO', 'Rondônia'),
    ('RR', 'Roraima'), ('SC', 'Santa Catarina'), ('SP', 'São Paulo'), ('SE', 'Sergipe'),
    ('TO', 'Tocantins'),
]


class Holiday(models.Model):
    """National (uf is null) or state holiday."""

    TIPO_CHOICES = [
        ("NACIONAL", "Nacional"),
        ("ESTADUAL", "Estadual"),
    ]

    data = models.DateField(db_index=True)
    nome = models.CharField(max_length=255)
    tipo = models.CharField(max_length=20, choices=TIPO_CHOICES, default="NACIONAL")
    uf = models.CharField(max_length=2, choices=UF_CHOICES, null=True, blank=True)

    class Meta:
        db_table = "holiday"
        ordering = ["data"]
        constraints = [
            models.UniqueConstraint(fields=["data", "uf", "nome"], name="unique_holiday"),
        ]

    def __str__(self):
        scope = self.uf or "BR"
        return f"{self.data:%d/%m/%Y} {self.nome} ({scope})"


class CourtCalendar(models.Model):
    """Calendar of one court, identified by its code (e.g. TJSP, TRF3)."""

    tribunal_codigo = models.CharField(max_length=20, unique=True)
    nome = models.CharField(max_length=255, blank=True)
    uf = models.CharField(max_length=2, choices=UF_CHOICES, null=True, blank=True)

    class Meta:
        db_table = "court_calendar"
        ordering = ["tribunal_codigo"]

    def __str__(self):
        return self.tribunal_codigo


class CourtHoliday(models.Model):
    """Court-specific holiday; only prazos_prorrogados ones affect deadlines."""

    TIPO_CHOICES = [
        ("NACIONAL", "Nacional"),
        ("ESTADUAL", "Estadual"),
        ("MUNICIPAL", "Municipal"),
        ("FORENSE", "Forense"),
        ("PONTO_FACULTATIVO", "Ponto facultativo"),
    ]

    calendar = models.ForeignKey(CourtCalendar, on_delete=models.CASCADE, related_name="holidays")
    data = models.DateField(db_index=True)
    nome = models.CharField(max_length=255)
    tipo = models.CharField(max_length=20, choices=TIPO_CHOICES, default="FORENSE")
    suspende_expediente = models.BooleanField(default=True)
    prazos_prorrogados = models.BooleanField(default=True)
    fundamento_legal = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "court_holiday"
        ordering = ["data"]

    def __str__(self):
        return f"{self.calendar} {self.data:%d/%m/%Y} {self.nome}"


class CourtSuspension(models.Model):
    """Range of days in which a court suspends deadlines (suspende_prazos)."""

    TIPO_CHOICES = [
        ("RECESSO_DEZ_JAN", "Recesso dezembro/janeiro"),
        ("FERIAS_JULHO", "Férias de julho"),
        ("SUSPENSAO_PRAZOS_ART220", "Suspensão de prazos (Art. 220 CPC)"),
        ("SUSPENSAO_PORTARIA", "Suspensão por portaria"),
        ("INDISPONIBILIDADE_SISTEMA", "Indisponibilidade do sistema"),
        ("LUTO_OFICIAL", "Luto oficial"),
        ("CALAMIDADE", "Calamidade"),
        ("ELEICOES", "Eleições"),
        ("OPERACAO_ESPECIAL", "Operação especial"),
    ]

    calendar = models.ForeignKey(CourtCalendar, on_delete=models.CASCADE, related_name="suspensions")
    tipo = models.CharField(max_length=30, choices=TIPO_CHOICES, default="SUSPENSAO_PORTARIA")
    nome = models.CharField(max_length=255)
    data_inicio = models.DateField()
    data_fim = models.DateField()
    suspende_prazos = models.BooleanField(default=True)
    suspende_audiencias = models.BooleanField(default=True)
    fundamento_legal = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "court_suspension"
        ordering = ["data_inicio"]

    def __str__(self):
        return f"{self.calendar} {self.data_inicio:%d/%m/%Y}-{self.data_fim:%d/%m/%Y} {self.nome}"

    def clean(self):
        if self.data_inicio and self.data_fim and self.data_fim < self.data_inicio:
            raise ValidationError({"data_fim": "A data final não pode ser anterior à inicial."})

    @property
    def duracao_dias(self):
        return (self.data_fim - self.data_inicio).days + 1


class CalendarExtraction(models.Model):
    """AI extraction of a court ordinance, kept for review before import."""

    STATUS_CHOICES = [
        ("PROCESSADO", "Processado"),
        ("IMPORTADO", "Importado"),
        ("ERRO", "Erro"),
    ]

    FILE_TYPE_CHOICES = [
        ("PDF", "PDF"),
        ("TEXTO", "Texto colado"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="calendar_extractions"
    )
    tribunal_codigo = models.CharField(max_length=20)
    filename = models.CharField(max_length=255)
    file_type = models.CharField(max_length=50, choices=FILE_TYPE_CHOICES, default="PDF")
    file_size = models.IntegerField()  # bytes
    page_count = models.IntegerField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="PROCESSADO")
    feriados = models.JSONField(default=list, blank=True)
    suspensoes = models.JSONField(default=list, blank=True)
    erro_processamento = models.TextField(blank=True)
    prompt_tokens = models.IntegerField(null=True, blank=True)
    completion_tokens = models.IntegerField(null=True, blank=True)
    total_tokens = models.IntegerField(null=True, blank=True)
    model_name = models.CharField(max_length=100, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "calendar_extraction"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.filename} - {self.user.username}"

    @property
    def file_size_display(self):
        """Return human-readable file size."""
        if self.file_size < 1024:
            return f"{self.file_size} B"
        elif self.file_size < 1024 * 1024:
            return f"{self.file_size / 1024:.1f} KB"
        return f"{self.file_size / (1024 * 1024):.1f} MB"
