import json

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, HttpResponseNotAllowed, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.deadline_engine import InvalidSimulationInput

from .forms import DeadlineSimulationForm, OrdinanceUploadForm
from .models import CalendarExtraction
from .services import (
    extract_calendar_from_pdf,
    extract_calendar_from_text,
    get_user_extractions,
    import_calendar_extraction,
    run_simulation,
    save_calendar_extraction,
)


@csrf_exempt
def simulate_api(request):
    """
    JSON deadline simulation.

    Anonymous callers get 401 before the body is read. Invalid input is a 400
    with {"error": ...}.
    """
    if not request.user.is_authenticated:
        return HttpResponse("Unauthorized", status=401)

    if request.method != 'POST':
        return HttpResponseNotAllowed(['POST'])

    try:
        payload = json.loads(request.body or b'null')
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JsonResponse({'error': 'Corpo da requisição não é um JSON válido'}, status=400)

    try:
        result = run_simulation(payload, today=timezone.localdate())
    except InvalidSimulationInput as e:
        return JsonResponse({'error': str(e)}, status=400)

    return JsonResponse(result, json_dumps_params={'ensure_ascii': False})


@login_required
def index(request):
    """
    Deadline simulator page.

    GET: Display the simulation form
    POST: Compute the deadline and display the result with its audit log
    """
    result = None

    if request.method == 'POST':
        form = DeadlineSimulationForm(request.POST)

        if form.is_valid():
            try:
                result = run_simulation(form.to_payload(), today=timezone.localdate())
            except InvalidSimulationInput as e:
                form.add_error(None, str(e))
    else:
        form = DeadlineSimulationForm()

    return render(request, 'prazos/simulador.html', {
        'form': form,
        'result': result,
    })


@login_required
def calendar_extract(request):
    """
    Court ordinance upload.

    GET: Display upload form and extraction history
    POST: Extract holidays/suspensions from the PDF or pasted text and save
    the extraction
    """
    result = None
    extraction = None

    if request.method == 'POST':
        form = OrdinanceUploadForm(request.POST, request.FILES)

        if form.is_valid():
            uploaded_file = form.cleaned_data.get('pdf_file')
            tribunal_codigo = form.cleaned_data['tribunal_codigo']
            ano = form.cleaned_data.get('ano')

            if uploaded_file:
                result = extract_calendar_from_pdf(uploaded_file, tribunal_codigo=tribunal_codigo, ano=ano)
                extraction = save_calendar_extraction(
                    user=request.user,
                    tribunal_codigo=tribunal_codigo,
                    filename=uploaded_file.name,
                    file_size=uploaded_file.size,
                    result=result,
                )
            else:
                texto = form.cleaned_data['texto']
                result = extract_calendar_from_text(texto, tribunal_codigo=tribunal_codigo, ano=ano)
                extraction = save_calendar_extraction(
                    user=request.user,
                    tribunal_codigo=tribunal_codigo,
                    filename=f'Texto colado ({tribunal_codigo})',
                    file_size=len(texto.encode('utf-8')),
                    result=result,
                    file_type='TEXTO',
                )

            if result.success:
                messages.success(
                    request,
                    f'{len(result.feriados)} feriado(s) e {len(result.suspensoes)} '
                    'suspensão(ões) extraídos. Revise antes de importar.'
                )
            else:
                messages.error(request, 'Não foi possível extrair o calendário da portaria.')
    else:
        form = OrdinanceUploadForm()

    return render(request, 'prazos/calendario_extrair.html', {
        'form': form,
        'result': result,
        'extraction': extraction,
        'history': get_user_extractions(request.user),
    })


@login_required
@require_POST
def calendar_import(request, pk):
    """Import a saved extraction into the court calendar."""
    extraction = get_object_or_404(CalendarExtraction, pk=pk, user=request.user)

    if extraction.status == 'ERRO':
        messages.error(request, 'Esta extração falhou e não pode ser importada.')
        return redirect('prazos:calendar_extract')

    holidays, suspensions = import_calendar_extraction(extraction)
    messages.success(
        request,
        f'Calendário {extraction.tribunal_codigo}: {holidays} feriado(s) e '
        f'{suspensions} suspensão(ões) importados.'
    )
    return redirect('prazos:calendar_extract')
