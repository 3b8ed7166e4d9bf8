from __future__ import annotations

STRINGS: dict[str, dict[str, str]] = {
    "ask_name": {
        "en": "¡Hola! What should we call you? Send your name.",
        "es": "¡Hola! ¿Cómo te llamas? Envía tu nombre.",
    },
    "ask_name_again": {"en": "Please send a name (letters, not empty).", "es": "Envía un nombre (no puede estar vacío)."},
    "ask_avatar": {
        "en": "Nice to meet you, {name}! Send a photo to use as your avatar, or /skip.",
        "es": "¡Mucho gusto, {name}! Envía una foto para tu avatar o /skip.",
    },
    "avatar_reminder": {"en": "Send a photo, or /skip.", "es": "Envía una foto o /skip."},
    "avatar_saved": {"en": "Avatar saved.", "es": "Avatar guardado."},
    "welcome_back": {"en": "Welcome back, {name}!", "es": "¡Bienvenido de nuevo, {name}!"},
    "sign_in_required": {"en": "Please send /start to sign in first.", "es": "Primero envía /start para iniciar sesión."},
    "lessons_header": {"en": "Choose a lesson:", "es": "Elige una lección:"},
    "no_lessons": {"en": "No lessons yet.", "es": "Todavía no hay lecciones."},
    "lesson_empty": {"en": "This lesson has no questions yet.", "es": "Esta lección todavía no tiene preguntas."},
    "lesson_missing": {"en": "Lesson not found.", "es": "Lección no encontrada."},
    "no_session": {"en": "No lesson in progress. Use /lessons to pick one.", "es": "No hay ninguna lección en curso. Usa /lessons."},
    "question_header": {"en": "Question {n} of {total}", "es": "Pregunta {n} de {total}"},
    "hint_available": {"en": "/hint shows the accepted answers.", "es": "/hint muestra las respuestas aceptadas."},
    "hint_header": {"en": "Accepted answers:", "es": "Respuestas aceptadas:"},
    "no_hint": {"en": "No hints for this question.", "es": "No hay pistas para esta pregunta."},
    "correct": {"en": "✅ Correct", "es": "✅ Correcto"},
    "wrong": {"en": "❌ Wrong", "es": "❌ Incorrecto"},
    "accent_hint": {"en": "Watch the accents:", "es": "Cuidado con los acentos:"},
    "your_answer": {"en": "Your answer:", "es": "Tu respuesta:"},
    "correct_answer": {"en": "Correct:", "es": "Respuesta correcta:"},
    "valid_answers": {"en": "Valid answers:", "es": "Respuestas válidas:"},
    "press_next": {"en": "press ▶️ Next", "es": "pulsa ▶️ Siguiente"},
    "use_buttons": {"en": "Use the Next button.", "es": "Usa el botón Siguiente."},
    "answer_first": {"en": "Answer the question first.", "es": "Primero responde la pregunta."},
    "misconfigured": {
        "en": "This question has no accepted answers, so it cannot be graded. The lesson was stopped.",
        "es": "Esta pregunta no tiene respuestas aceptadas y no se puede corregir. La lección se detuvo.",
    },
    "results_header": {"en": "Lesson complete: {title}", "es": "Lección completada: {title}"},
    "score_line": {"en": "Your score: {score}/{total}", "es": "Tu puntuación: {score}/{total}"},
    "percent_line": {"en": "{percent}% correct", "es": "{percent}% correcto"},
    "band_excellent": {"en": "Excellent work!", "es": "¡Excelente trabajo!"},
    "band_great": {"en": "Great job!", "es": "¡Muy bien hecho!"},
    "band_well_done": {"en": "Well done!", "es": "¡Bien hecho!"},
    "band_good_effort": {"en": "Good effort!", "es": "¡Buen esfuerzo!"},
    "band_keep_practicing": {"en": "Keep practicing!", "es": "¡Sigue practicando!"},
    "btn_next": {"en": "▶️ Next", "es": "▶️ Siguiente"},
    "btn_restart": {"en": "🔄 Restart", "es": "🔄 Repetir"},
    "btn_lessons": {"en": "📚 Lessons", "es": "📚 Lecciones"},
    "profile_header": {"en": "Profile", "es": "Perfil"},
    "profile_name": {"en": "Name:", "es": "Nombre:"},
    "profile_role": {"en": "Role:", "es": "Rol:"},
    "profile_avatar": {"en": "Avatar:", "es": "Avatar:"},
    "profile_completed": {"en": "Lessons completed:", "es": "Lecciones completadas:"},
    "profile_edit": {
        "en": "Send a photo to change your avatar, or /name <new name> to rename.",
        "es": "Envía una foto para cambiar tu avatar, o /name <nuevo nombre> para cambiar el nombre.",
    },
    "profile_lang": {"en": "Choose UI language:", "es": "Elige el idioma:"},
    "name_usage": {"en": "Usage: /name <new name>", "es": "Uso: /name <nuevo nombre>"},
    "name_updated": {"en": "Name updated.", "es": "Nombre actualizado."},
    "lang_set": {"en": "Language set to English.", "es": "Idioma cambiado a español."},
    "avatar_updated": {"en": "Avatar updated.", "es": "Avatar actualizado."},
    "lesson_finished": {
        "en": "This lesson is finished. Restart it or pick another one.",
        "es": "Esta lección ya terminó. Repítela o elige otra.",
    },
    "forbidden": {"en": "Forbidden", "es": "Acceso denegado"},
    "admin_panel": {
        "en": "Admin panel\nLessons: {lessons}\nQuestions: {questions}\nUsers: {users}\n\n"
        "Add lessons with: python -m tools.import_lessons data/lessons.json\n"
        "Replace everything (drops progress): add --replace",
        "es": "Panel de administración\nLecciones: {lessons}\nPreguntas: {questions}\nUsuarios: {users}\n\n"
        "Añade lecciones con: python -m tools.import_lessons data/lessons.json\n"
        "Reemplazar todo (borra el progreso): añade --replace",
    },
    "signed_out": {"en": "Signed out. Send /start to sign in again.", "es": "Sesión cerrada. Envía /start para volver."},
    "yes": {"en": "yes", "es": "sí"},
    "no": {"en": "no", "es": "no"},
}

def t(key: str, lang: str, **kwargs: object) -> str:
    text = STRINGS.get(key, {}).get(lang, STRINGS.get(key, {}).get("en", key))
    return text.format(**kwargs) if kwargs else text
