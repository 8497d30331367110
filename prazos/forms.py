"""
Forms for the prazos application.
"""
from datetime import date

from django import forms

from core.deadline_engine import MAX_DAYS, CountingMode, IntimationMethod, PartyType, SpecialRule

from .models import UF_CHOICES

COUNTING_CHOICES = [
    (CountingMode.BUSINESS_DAYS.value, "Dias úteis"),
    (CountingMode.CALENDAR_DAYS.value, "Dias corridos"),
    (CountingMode.HOURS.value, "Horas"),
]

METHOD_CHOICES = [
    (IntimationMethod.ELECTRONIC_NOTICE.value, "Intimação eletrônica"),
    (IntimationMethod.SYSTEM_AVAILABILITY.value, "Disponibilização no sistema"),
    (IntimationMethod.OFFICIAL_GAZETTE_INTIMATION.value, "Intimação pelo Diário Oficial"),
    (IntimationMethod.OFFICIAL_GAZETTE_PUBLICATION.value, "Publicação no Diário"),
    (IntimationMethod.RETURN_RECEIPT_FILING.value, "Juntada do AR"),
    (IntimationMethod.WRIT_FILING.value, "Juntada do mandado"),
    (IntimationMethod.OTHER.value, "Outro evento"),
]

PARTY_TYPE_CHOICES = [("", "Nenhuma")] + [
    (PartyType.FEDERAL_TREASURY.value, "Fazenda Federal"),
    (PartyType.STATE_TREASURY.value, "Fazenda Estadual"),
    (PartyType.MUNICIPAL_TREASURY.value, "Fazenda Municipal"),
    (PartyType.AUTARCHY.value, "Autarquia"),
    (PartyType.PUBLIC_FOUNDATION.value, "Fundação Pública"),
    (PartyType.PUBLIC_PROSECUTOR.value, "Ministério Público"),
    (PartyType.PUBLIC_DEFENDER.value, "Defensoria Pública"),
]

RULE_CHOICES = [
    (SpecialRule.DOUBLE_TREASURY.value, "Dobra - Fazenda Pública"),
    (SpecialRule.DOUBLE_PROSECUTOR.value, "Dobra - Ministério Público"),
    (SpecialRule.DOUBLE_DEFENDER.value, "Dobra - Defensoria Pública"),
    (SpecialRule.DOUBLE_CO_LITIGANTS.value, "Dobra - Litisconsórcio com advogados diferentes"),
    (SpecialRule.RECESS_SUSPENSION.value, "Suspensão pelo recesso forense"),
]


class DeadlineSimulationForm(forms.Form):
    """Form version of the simulation API, with a single optional party."""

    dias = forms.IntegerField(label="Prazo (dias)", min_value=1, max_value=MAX_DAYS)
    contagem_tipo = forms.ChoiceField(
        label="Contagem", choices=COUNTING_CHOICES, initial=CountingMode.BUSINESS_DAYS.value
    )
    data_intimacao = forms.DateField(
        label="Data da intimação/evento",
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
    )
    metodo_intimacao = forms.ChoiceField(label="Método de intimação", choices=METHOD_CHOICES)
    tribunal_codigo = forms.CharField(label="Tribunal", max_length=20, required=False)
    uf = forms.ChoiceField(label="UF", choices=[("", "-")] + UF_CHOICES, required=False)
    tipo_prazo = forms.CharField(label="Tipo de prazo", max_length=100, required=False)
    artigo_legal = forms.CharField(label="Artigo legal", max_length=100, required=False)
    polo = forms.ChoiceField(
        label="Polo da parte",
        choices=[("ATIVO", "Ativo"), ("PASSIVO", "Passivo")],
        initial="PASSIVO",
        required=False,
    )
    tipo_parte = forms.ChoiceField(label="Parte com prerrogativa", choices=PARTY_TYPE_CHOICES, required=False)
    prazo_dobro = forms.BooleanField(label="Parte tem prazo em dobro", required=False)
    regras_especiais = forms.MultipleChoiceField(
        label="Regras especiais",
        choices=RULE_CHOICES,
        required=False,
        widget=forms.CheckboxSelectMultiple,
    )

    def to_payload(self) -> dict:
        """JSON payload equivalent for run_simulation()."""
        data = self.cleaned_data
        partes = []
        if data.get("tipo_parte"):
            partes.append({
                "polo": data.get("polo") or "",
                "tipo_parte": data["tipo_parte"],
                "prazo_dobro": bool(data.get("prazo_dobro")),
            })
        data_intimacao: date = data["data_intimacao"]
        return {
            "dias": data["dias"],
            "contagem_tipo": data["contagem_tipo"],
            "data_intimacao": data_intimacao.isoformat(),
            "metodo_intimacao": data["metodo_intimacao"],
            "tribunal_codigo": data.get("tribunal_codigo") or None,
            "uf": data.get("uf") or None,
            "tipo_prazo": data.get("tipo_prazo") or None,
            "artigo_legal": data.get("artigo_legal") or None,
            "partes": partes,
            "regras_especiais": list(data.get("regras_especiais") or []),
        }


class OrdinanceUploadForm(forms.Form):
    """Court ordinance for calendar extraction: a PDF upload or pasted text."""

    tribunal_codigo = forms.CharField(label="Tribunal", max_length=20)
    ano = forms.IntegerField(label="Ano de referência", min_value=2000, max_value=2100, required=False)
    pdf_file = forms.FileField(
        label="Select PDF File",
        help_text="Maximum file size: 10MB. Only PDF files are accepted.",
        required=False,
        widget=forms.FileInput(attrs={
            'accept': 'application/pdf,.pdf',
            'class': 'form-control',
        })
    )
    texto = forms.CharField(
        label="Ou cole o texto da portaria",
        required=False,
        widget=forms.Textarea(attrs={'rows': 8, 'class': 'form-control'}),
    )

    # Maximum file size: 10MB
    MAX_FILE_SIZE = 10 * 1024 * 1024

    def clean_tribunal_codigo(self):
        return self.cleaned_data['tribunal_codigo'].strip().upper()

    def clean_pdf_file(self):
        """Validate uploaded file is a PDF and within size limits."""
        pdf_file = self.cleaned_data.get('pdf_file')

        if pdf_file:
            if pdf_file.size > self.MAX_FILE_SIZE:
                raise forms.ValidationError(
                    f"File size exceeds 10MB limit. Your file is {pdf_file.size / (1024*1024):.1f}MB."
                )

            if pdf_file.content_type != 'application/pdf':
                raise forms.ValidationError(
                    "Invalid file type. Please upload a PDF file."
                )

            if not pdf_file.name.lower().endswith('.pdf'):
                raise forms.ValidationError(
                    "Invalid file extension. Please upload a .pdf file."
                )

            # Magic bytes
            pdf_file.seek(0)
            header = pdf_file.read(5)
            pdf_file.seek(0)
            if header != b'%PDF-':
                raise forms.ValidationError(
                    "Invalid PDF file. The file does not appear to be a valid PDF."
                )

        return pdf_file

    def clean(self):
        cleaned_data = super().clean()
        if self.errors.get('pdf_file'):
            return cleaned_data

        has_pdf = bool(cleaned_data.get('pdf_file'))
        has_text = bool(cleaned_data.get('texto'))
        if has_pdf and has_text:
            raise forms.ValidationError("Envie o PDF ou cole o texto da portaria, não ambos.")
        if not has_pdf and not has_text:
            raise forms.ValidationError("Envie o PDF ou cole o texto da portaria.")
        return cleaned_data
