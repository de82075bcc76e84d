from __future__ import annotations
import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

MESSAGES = {
    "excellent": [
        "🌟 Incrível! Sua consistência está rendendo resultados notáveis. Continue assim!",
        "🏆 Excelente trabalho! Você está no caminho certo para atingir seus objetivos de saúde.",
        "💪 Impressionante! Sua dedicação aos hábitos saudáveis é inspiradora.",
    ],
    "good": [
        "🌱 Bom progresso! Você está construindo hábitos saudáveis consistentes.",
        "👍 Você está indo muito bem! Manter a regularidade é a chave para o sucesso.",
        "📈 Progresso sólido esta semana. Cada escolha saudável te aproxima dos seus objetivos.",
    ],
    "average": [
        "🌤️ Você está no caminho certo! Pequenos ajustes podem trazer grandes melhorias.",
        "🧩 Progresso constante é mais importante que perfeição. Continue avançando!",
        "🚶 Um passo de cada vez. Foque em melhorar um hábito por semana.",
    ],
    "needs_improvement": [
        "🌱 Esta semana foi desafiadora, mas cada novo dia é uma chance de recomeçar!",
        "🧭 Lembre-se do motivo pelo qual você começou. Pequenos passos levam a grandes mudanças.",
        "💡 Identificar os obstáculos é o primeiro passo para superá-los. Você consegue!",
    ],
}

STREAK_MESSAGES = [
    "🔥 Sua sequência de {streak} dias é impressionante!",
    "⚡ {streak} dias de consistência! Seu corpo agradece cada escolha saudável.",
    "💯 Sequência de {streak} dias! A consistência é o segredo do sucesso.",
]

FEEDBACK = {
    "water": "Tente aumentar sua ingestão de água. Pequenos goles frequentes ajudam.",
    "exercise": "Encontre pequenas janelas para atividade física, mesmo 10 minutos fazem diferença!",
    "calories": "Mantenha refeições regulares para equilibrar seu consumo calórico ao longo do dia.",
    "supplements": "Associe seus suplementos a uma refeição específica para não esquecer.",
}

MIN_STREAK = 3


@dataclass
class WeekStats:
    water_pct: float
    exercise_days: int
    calorie_days: int
    supplements_pct: float

    def percentages(self) -> dict[str, float]:
        return {
            "water": max(0.0, min(100.0, self.water_pct)),
            "exercise": min(7, self.exercise_days) / 7 * 100,
            "calories": min(7, self.calorie_days) / 7 * 100,
            "supplements": max(0.0, min(100.0, self.supplements_pct)),
        }


def adherence_score(stats: WeekStats) -> int:
    pct = stats.percentages()
    return int(round(sum(pct.values()) / len(pct)))


def category(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "average"
    return "needs_improvement"


def weakest_area(stats: WeekStats) -> str:
    pct = stats.percentages()
    return min(pct, key=pct.get)


def motivational_message(score: int, streak: int, stats: Optional[WeekStats] = None,
                         rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    msg = rng.choice(MESSAGES[category(score)])
    if streak >= MIN_STREAK:
        msg += " " + rng.choice(STREAK_MESSAGES).format(streak=streak)
    if score < 70:
        area = weakest_area(stats) if stats else rng.choice(list(FEEDBACK))
        msg += " " + FEEDBACK[area]
    return msg


def personalized_tips(stats: WeekStats) -> list[str]:
    tips = []
    if stats.water_pct < 60:
        tips.append("Hidratação: mantenha uma garrafa de água por perto e defina lembretes a cada 2 horas.")
    if stats.exercise_days < 3:
        tips.append("Exercício: mesmo 15 minutos de caminhada ou alongamento já fazem diferença.")
    if stats.calorie_days < 4:
        tips.append("Nutrição: planeje suas refeições com antecedência para evitar escolhas impulsivas.")
    if stats.supplements_pct < 70:
        tips.append("Suplementação: deixe seus suplementos em um local visível.")
    if not tips:
        tips.append("Continue com a consistência! Considere aumentar levemente a intensidade dos exercícios.")
    return tips


AREA_NAMES = {
    "water": "hidratação",
    "exercise": "exercícios",
    "calories": "alimentação",
    "supplements": "suplementação",
}


def weekly_summary(stats: WeekStats) -> str:
    score = adherence_score(stats)
    summary = {
        "excellent": "Sua semana foi excelente! Você manteve uma consistência admirável.",
        "good": "Você teve uma boa semana! Sua dedicação está rendendo frutos.",
        "average": "Sua semana foi regular, com pontos fortes e áreas para melhorar.",
        "needs_improvement": "Esta semana foi desafiadora, mas identificar os obstáculos é o primeiro passo.",
    }[category(score)]

    ranked = sorted(stats.percentages().items(), key=lambda kv: kv[1], reverse=True)
    strongest, weakest = ranked[0], ranked[-1]
    if strongest[1] >= 70:
        summary += f" Seu ponto mais forte foi {AREA_NAMES[strongest[0]]}, continue assim!"
    if weakest[1] < 50:
        summary += f" Foque em melhorar {AREA_NAMES[weakest[0]]} na próxima semana."
    return summary


def current_streak(days: Iterable[str], today: date) -> int:
    """Consecutive logged days ending today (or yesterday, if today is still empty)."""
    logged = set(days)
    d = today if today.isoformat() in logged else today - timedelta(days=1)
    streak = 0
    while d.isoformat() in logged:
        streak += 1
        d -= timedelta(days=1)
    return streak
