from decimal import Decimal
from wtforms import (
    Form,
    StringField,
    PasswordField,
    DecimalField,
    DateField,
    TextAreaField,
    SelectField,
    RadioField,
    SubmitField,
    FieldList,
    FormField,
)
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, Regexp, StopValidation
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired, FileAllowed

from .finance import expense_total
from .models import SECTIONS, SECTION_LABELS
from .services import EventData, ExpenseData
from .storage import ALLOWED_EXTS, IMAGE_EXTS

ZERO = Decimal("0")
# largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


class LoginForm(FlaskForm):
    password = PasswordField("Contraseña", validators=[DataRequired()])
    submit = SubmitField("Ingresar")


# -------------------- events --------------------

def finite_amount(form, field):
    if field.data is not None and not field.data.is_finite():
        raise StopValidation("Ingresá un número válido.")


def amount_validators():
    return [Optional(), finite_amount, NumberRange(min=0, max=MAX_AMOUNT)]


def _typed(value) -> Decimal:
    return value if value is not None and value.is_finite() else ZERO


class ExpenseForm(Form):
    type = StringField("Tipo", validators=[Optional(), Length(max=120)])
    quantity = DecimalField("Cantidad", default=Decimal("1"), validators=amount_validators())
    unit_price = DecimalField("Precio unitario", default=ZERO, validators=amount_validators())


class EventForm(FlaskForm):
    """
    The draft side of an event: every field may be blank or half-typed while
    the admin edits. to_data() turns a validated form into an EventData.
    """
    date = DateField("Fecha", validators=[DataRequired()])
    event_time = StringField(
        "Hora del Evento",
        validators=[Optional(), Regexp(r"^\d{2}:\d{2}$", message="Usá el formato HH:MM.")],
    )
    manager_name = StringField("Nombre del Encargado", validators=[Optional(), Length(max=120)])
    venue_name = StringField("Nombre del Lugar / Salón", validators=[Optional(), Length(max=120)])
    address = StringField("Dirección del Lugar", validators=[Optional(), Length(max=255)])
    agreed_price = DecimalField("Precio Acordado", default=ZERO, validators=amount_validators())
    reminder = StringField("Recordatorio (Opcional)", validators=[Optional(), Length(max=255)])
    expenses = FieldList(FormField(ExpenseForm))

    add_expense = SubmitField("Agregar Gasto")
    submit = SubmitField("Guardar Evento")

    def add_expense_row(self):
        self.expenses.append_entry({"type": "", "quantity": Decimal("1"), "unit_price": ZERO})

    def remove_expense_row(self, index: int):
        kept = [e.data for i, e in enumerate(self.expenses.entries) if i != index]
        self.expenses.entries = []
        self.expenses.last_index = -1
        for data in kept:
            self.expenses.append_entry(data)

    def expense_rows(self):
        """(entry, total) per row, totals recomputed from what was typed."""
        return [
            (entry, expense_total(_typed(entry.form.quantity.data), _typed(entry.form.unit_price.data)))
            for entry in self.expenses.entries
        ]

    def expenses_total(self) -> Decimal:
        return sum((total for _entry, total in self.expense_rows()), ZERO)

    def profit(self) -> Decimal:
        return _typed(self.agreed_price.data) - self.expenses_total()

    def to_data(self) -> EventData:
        return EventData(
            date=self.date.data,
            address=(self.address.data or "").strip(),
            event_time=(self.event_time.data or "").strip(),
            manager_name=(self.manager_name.data or "").strip(),
            venue_name=(self.venue_name.data or "").strip(),
            reminder=(self.reminder.data or "").strip(),
            agreed_price=self.agreed_price.data or ZERO,
            expenses=[
                ExpenseData(
                    type=(entry.form.type.data or "").strip(),
                    quantity=entry.form.quantity.data or ZERO,
                    unit_price=entry.form.unit_price.data or ZERO,
                )
                for entry in self.expenses.entries
            ],
        )


# -------------------- media --------------------

class AssetUploadForm(FlaskForm):
    section = SelectField("Sección", choices=[(s, SECTION_LABELS[s]) for s in SECTIONS])
    file = FileField(
        "Archivo",
        validators=[FileRequired(), FileAllowed([e.lstrip(".") for e in IMAGE_EXTS], "Solo imágenes.")],
    )
    submit = SubmitField("Subir")


class FolderForm(FlaskForm):
    name = StringField("Nombre", validators=[DataRequired(), Length(max=120)])
    description = TextAreaField("Descripción", validators=[Optional()])
    submit = SubmitField("Crear Carpeta")


class GalleryUploadForm(FlaskForm):
    file = FileField(
        "Archivo",
        validators=[FileRequired(), FileAllowed([e.lstrip(".") for e in ALLOWED_EXTS], "Solo imágenes o videos.")],
    )
    title = StringField("Título", validators=[Optional(), Length(max=200)])
    description = TextAreaField("Descripción", validators=[Optional()])
    folder_id = SelectField("Carpeta", choices=[], validate_choice=False)
    submit = SubmitField("Subir")


class GalleryItemForm(FlaskForm):
    title = StringField("Título", validators=[Optional(), Length(max=200)])
    description = TextAreaField("Descripción", validators=[Optional()])
    folder_id = SelectField("Carpeta", choices=[], validate_choice=False)
    submit = SubmitField("Guardar")


def folder_choices(folders):
    return [("", "Sin carpeta")] + [(f.id, f.name) for f in folders]


def content_form_for(entries):
    """Build a form class with one field per site content entry."""
    class ContentForm(FlaskForm):
        submit = SubmitField("Guardar Textos")

    for entry in entries:
        field_cls = TextAreaField if len(entry.value or "") > 80 else StringField
        setattr(ContentForm, f"content_{entry.key}", field_cls(entry.label or entry.key, default=entry.value))
    return ContentForm


# -------------------- public quote request --------------------

YES_NO = [("Si", "Si"), ("No", "No")]
FURNITURE = [(v, v) for v in ["Juegos de Living", "Sillas", "Ambos", "Ninguno"]]


class QuoteForm(FlaskForm):
    nombre_apellido = StringField("Nombre y Apellido", validators=[DataRequired(), Length(max=120)])
    email = StringField("Email", validators=[DataRequired(), Email()])
    telefono = StringField("Teléfono", validators=[DataRequired(), Length(max=40)])
    ubicacion = StringField("Ubicación del Evento", validators=[DataRequired(), Length(max=200)])
    fecha_hora = StringField("Fecha y Hora", validators=[DataRequired(), Length(max=40)])
    duracion = StringField("Duración (hs)", validators=[DataRequired(), Length(max=20)])
    invitados = StringField("Cantidad de Invitados", validators=[DataRequired(), Length(max=20)])
    ambientacion = RadioField("¿Ambientación?", choices=YES_NO, validators=[DataRequired()])
    sonido_tecnica = RadioField("¿Técnica y Sonido?", choices=YES_NO, validators=[DataRequired()])
    pista_baile = RadioField("¿Pista de Baile?", choices=YES_NO, validators=[DataRequired()])
    mobiliario = RadioField("Mobiliario Requerido", choices=FURNITURE, validators=[DataRequired()])
    comentarios = TextAreaField("Comentarios adicionales...", validators=[Optional(), Length(max=1000)])
    submit = SubmitField("SOLICITAR PRESUPUESTO")

    def answers(self) -> dict:
        return {
            name: (field.data or "").strip()
            for name, field in self._fields.items()
            if name not in ("submit", "csrf_token")
        }
