HOW_TO = (
    "Dica: foto do prato de cima + 1 frase dizendo o que é e como foi preparado "
    "(ex.: \"arroz, feijão e frango grelhado, porção média\")."
)

HELP = (
    "Como usar:\n"
    "1) Envie foto ou texto da refeição (1 frase: o que é e quanto).\n"
    "2) Registre água, exercícios, medidas e suplementos com os comandos abaixo.\n\n"
    "Comandos:\n"
    "/start — preencher ou refazer o perfil\n"
    "/hoje — resumo do dia\n"
    "/energia — metabolismo basal, gasto diário e metas\n"
    "/agua — registro de água\n"
    "/exercicio 30 corrida — registrar exercício\n"
    "/meta_exercicio [min] — ver ou definir a meta semanal\n"
    "/medidas peso 80 cintura 90 — registrar medidas\n"
    "/suplemento Vitamina D 2000UI — adicionar suplemento\n"
    "/suplementos — marcar suplementos do dia\n"
    "/exame <texto> — analisar exame (ou envie o PDF ou .txt)\n"
    "/exames — últimos exames\n"
    "/plano [preferências] — plano alimentar com IA\n"
    "/conversa — conversar sobre como você está se sentindo\n"
    "/semana — progresso da semana"
)

NEED_PROFILE = "Primeiro preencha o perfil: /start"
AI_DISABLED = "A análise com IA não está configurada neste bot."
AI_FAILED = "Não consegui falar com a IA agora. Tente novamente em alguns minutos."
