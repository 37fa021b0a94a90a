"""WhatsApp deep links for event reminders and quote requests."""
from urllib.parse import quote

from .utils import iso_day, plain_amount

WHATSAPP_BASE = "https://wa.me"

QUOTE_GREETING = "¡Hola! Me gustaría recibir un presupuesto para el alquiler de una carpa Norden Zelt 😃\n\n"

# (form field, label) in the order they appear in the message
QUOTE_FIELDS = [
    ("nombre_apellido", "Nombre"),
    ("email", "Email"),
    ("telefono", "Teléfono"),
    ("ubicacion", "Ubicación del Evento"),
    ("fecha_hora", "Fecha y Hora"),
    ("duracion", "Duración"),
    ("invitados", "Invitados"),
    ("ambientacion", "Ambientación"),
    ("sonido_tecnica", "Técnica y Sonido"),
    ("mobiliario", "Mobiliario"),
    ("pista_baile", "Pista de Baile"),
]


def whatsapp_link(number: str, message: str) -> str:
    # same escaping as JavaScript's encodeURIComponent
    text = quote(message, safe="-_.!~*'()")
    return f"{WHATSAPP_BASE}/{number}?text={text}"


def reminder_message(event) -> str:
    return (
        "*RECORDATORIO NORDEN ZELT (2 SEMANAS)*\n\n"
        f"El evento de *{event.manager_name}* en *{event.venue_name}* es en 2 semanas.\n\n"
        "*Detalles:*\n"
        f"- Fecha: {iso_day(event.date)}\n"
        f"- Hora: {event.event_time}\n"
        f"- Lugar: {event.address}\n"
        f"- Precio: ${plain_amount(event.agreed_price)}\n"
        f"- Recordatorio: {event.reminder or 'N/A'}\n\n"
        "¡A preparar todo! 😃"
    )


def reminder_link(number: str, event) -> str:
    return whatsapp_link(number, reminder_message(event))


def quote_message(answers: dict) -> str:
    lines = ["*Datos del Pedido:*"]
    for field, label in QUOTE_FIELDS:
        value = answers.get(field, "")
        if field == "duracion":
            value = f"{value} hs"
        lines.append(f"- {label}: {value}")
    if answers.get("comentarios"):
        lines.append(f"- Comentarios: {answers['comentarios']}")
    return QUOTE_GREETING + "\n".join(lines) + "\n"


def quote_link(number: str, answers: dict) -> str:
    return whatsapp_link(number, quote_message(answers))
