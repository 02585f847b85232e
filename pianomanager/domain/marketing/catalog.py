"""
Built-in message templates and the ``{{variable}}`` names each type may use
"""

TEMPLATE_TYPES = (
    "appointment_reminder",
    "service_completed",
    "maintenance_reminder",
    "invoice_sent",
    "welcome",
    "birthday",
    "promotion",
    "follow_up",
    "reactivation",
    "custom",
)

TEMPLATE_VARIABLES = {
    "appointment_reminder": [
        "cliente_nombre",
        "cliente_nombre_completo",
        "fecha_cita",
        "hora_cita",
        "direccion",
        "tipo_servicio",
        "nombre_negocio",
        "telefono_negocio",
    ],
    "service_completed": ["cliente_nombre", "fecha_servicio", "tipo_servicio", "importe", "notas", "nombre_negocio"],
    "maintenance_reminder": [
        "cliente_nombre",
        "piano_marca",
        "piano_modelo",
        "ultimo_servicio",
        "meses_desde_servicio",
        "nombre_negocio",
    ],
    "invoice_sent": ["cliente_nombre", "numero_factura", "importe", "fecha_factura", "nombre_negocio"],
    "welcome": ["cliente_nombre", "nombre_negocio", "telefono_negocio", "email_negocio"],
    "birthday": ["cliente_nombre", "nombre_negocio"],
    "promotion": ["cliente_nombre", "nombre_promocion", "descuento", "fecha_validez", "nombre_negocio"],
    "follow_up": ["cliente_nombre", "tipo_servicio", "fecha_servicio", "dias_desde_servicio", "nombre_negocio"],
    "reactivation": ["cliente_nombre", "ultimo_servicio", "meses_inactivo", "nombre_negocio"],
}
# Custom messages may use any known variable
TEMPLATE_VARIABLES["custom"] = sorted({v for names in TEMPLATE_VARIABLES.values() for v in names})

DEFAULT_TEMPLATES = {
    "appointment_reminder": {
        "name": "Recordatorio de Cita",
        "subject": "Recordatorio de su cita",
        "content": """Hola {{cliente_nombre}},

Le recordamos su cita programada:

Fecha: {{fecha_cita}}
Hora: {{hora_cita}}
Dirección: {{direccion}}
Servicio: {{tipo_servicio}}

Si necesita modificar o cancelar la cita, por favor contáctenos con antelación.

Un saludo,
{{nombre_negocio}}""",
    },
    "service_completed": {
        "name": "Servicio Completado",
        "subject": "Servicio completado",
        "content": """Hola {{cliente_nombre}},

Le confirmamos que el servicio ha sido completado satisfactoriamente:

Fecha: {{fecha_servicio}}
Tipo: {{tipo_servicio}}
Importe: {{importe}}

{{notas}}

Gracias por confiar en nosotros.

Un saludo,
{{nombre_negocio}}""",
    },
    "maintenance_reminder": {
        "name": "Recordatorio de Mantenimiento",
        "subject": "Su piano podría necesitar mantenimiento",
        "content": """Hola {{cliente_nombre}},

Le recordamos que su piano {{piano_marca}} {{piano_modelo}} podría necesitar mantenimiento.

Último servicio: {{ultimo_servicio}}
Hace: {{meses_desde_servicio}} meses

Para mantener su piano en óptimas condiciones, recomendamos una afinación cada 6-12 meses.

Un saludo,
{{nombre_negocio}}""",
    },
    "invoice_sent": {
        "name": "Factura Enviada",
        "subject": "Factura {{numero_factura}}",
        "content": """Hola {{cliente_nombre}},

Le enviamos la factura correspondiente:

Factura: {{numero_factura}}
Importe: {{importe}}
Fecha: {{fecha_factura}}

Gracias por su confianza.

Un saludo,
{{nombre_negocio}}""",
    },
    "welcome": {
        "name": "Bienvenida",
        "subject": "Bienvenido/a a {{nombre_negocio}}",
        "content": """Hola {{cliente_nombre}},

¡Bienvenido/a a {{nombre_negocio}}!

Estamos encantados de tenerle como cliente. A partir de ahora, cuidaremos de su piano con la máxima profesionalidad.

Si tiene alguna pregunta, no dude en contactarnos:
{{telefono_negocio}}
{{email_negocio}}

Un saludo,
{{nombre_negocio}}""",
    },
    "birthday": {
        "name": "Felicitación de Cumpleaños",
        "subject": "¡Feliz cumpleaños!",
        "content": """¡Feliz cumpleaños, {{cliente_nombre}}!

Desde {{nombre_negocio}} le deseamos un día muy especial.""",
    },
    "promotion": {
        "name": "Promoción",
        "subject": "{{nombre_promocion}}",
        "content": """Hola {{cliente_nombre}},

¡Tenemos una oferta especial para usted!

{{nombre_promocion}}
Descuento: {{descuento}}
Válido hasta: {{fecha_validez}}

Un saludo,
{{nombre_negocio}}""",
    },
    "follow_up": {
        "name": "Seguimiento Post-Servicio",
        "subject": "¿Qué tal su piano?",
        "content": """Hola {{cliente_nombre}},

Hace {{dias_desde_servicio}} días realizamos el servicio de {{tipo_servicio}} en su piano.

¿Está satisfecho/a con el resultado? Nos encantaría conocer su opinión.

Un saludo,
{{nombre_negocio}}""",
    },
    "reactivation": {
        "name": "Reactivación de Cliente",
        "subject": "¡Le echamos de menos!",
        "content": """Hola {{cliente_nombre}},

¡Le echamos de menos! Hace {{meses_inactivo}} meses que no nos visita.

Su último servicio fue: {{ultimo_servicio}}

¿Le gustaría programar una revisión de su piano?

Un saludo,
{{nombre_negocio}}""",
    },
    "custom": {
        "name": "Mensaje Personalizado",
        "subject": "{{nombre_negocio}}",
        "content": """Hola {{cliente_nombre}},

[Escriba aquí su mensaje personalizado]

Un saludo,
{{nombre_negocio}}""",
    },
}
