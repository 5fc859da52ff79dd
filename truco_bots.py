import json
import random

from google import genai
from google.genai import types

from truco_core import FORCA_PADRAO, calcular_forca
from truco_partida import (
    ACEITAR, CORRER, JOGAR, NOMES_TIMES, TIPOS_ACAO, TRUCO, Acao,
)


class FalhaProvedor(Exception):
    """Resposta do provedor que não dá pra entender."""


# ======================================================================
# IA DO BOT — HEURÍSTICA SIMPLES
# ======================================================================

class BotHeuristico:
    """
    Joga a carta mais forte, pede truco com mão boa (ou blefando de vez em
    quando) e aceita o truco duas vezes em cada três.
    """

    def __init__(self, rng=None):
        self.rng = rng or random.Random()

    def __call__(self, estado, assento):
        if estado.aposta.aguardando_resposta:
            aceitar = self.rng.choice([True, False, True])
            return Acao(ACEITAR if aceitar else CORRER)

        mao = estado.jogadores[assento].mao
        if not mao:
            return Acao(JOGAR, 0)

        forcas = [calcular_forca(c, estado.manilha) for c in mao]

        pode_pedir, _ = estado.aposta.pode_pedir()
        if pode_pedir and (self.deve_pedir_truco(forcas) or self.deve_blefar(forcas, estado.aposta.valor)):
            return Acao(TRUCO)

        # joga carta normalmente
        return Acao(JOGAR, forcas.index(max(forcas)))

    def deve_pedir_truco(self, forcas):
        forcas = sorted(forcas, reverse=True)

        # critérios simples e eficientes
        tem_manilha = forcas[0] >= 100
        tem_duas_boas = len(forcas) >= 2 and forcas[1] >= 8

        chance = self.rng.random()  # evita robô perfeito

        if tem_manilha and chance < 0.75:
            return True
        if tem_duas_boas and chance < 0.55:
            return True
        return False

    def deve_blefar(self, forcas, valor_atual):
        # NÃO blefa se já estiver muito alto
        if valor_atual >= 9:
            return False

        maior = max(forcas)
        chance = self.rng.random()

        # blefe puro (mão fraca, mas arrisca)
        if maior < 7 and chance < 0.18:
            return True

        # semi-blefe (1 carta média)
        if 7 <= maior < 9 and chance < 0.35:
            return True
        return False


class BotPrimeiraCarta:
    """Sempre joga a primeira carta e corre de qualquer truco."""

    def __call__(self, estado, assento):
        if estado.aposta.aguardando_resposta:
            return Acao(CORRER)
        return Acao(JOGAR, 0)


# ======================================================================
# PROVEDOR REMOTO (ex.: modelo de linguagem)
# ======================================================================

def descrever_mesa(estado, assento):
    jogador = estado.jogadores[assento]
    placar = estado.placar
    mao = [f"{i}: {c}" for i, c in enumerate(jogador.mao)]
    mesa = [f"{estado.nome(a)}: {c}" for a, c in estado.mesa]

    return f"""
Você é um jogador profissional de Truco Paulista.
Estado do jogo:
- Placar: {NOMES_TIMES[0]} {placar[0]} x {placar[1]} {NOMES_TIMES[1]}
- Vira: {estado.vira}
- Manilha (valor mais forte): {estado.manilha}
- Sua mão: {mao}
- Mesa (cartas desta rodada): {mesa}
- Resultado das rodadas (0, 1 ou -1 para empate): {list(estado.rodadas)}
- Valor atual da mão: {estado.aposta.valor}
- Aguardando resposta de truco: {estado.aposta.aguardando_resposta}

Regras:
- Ordem de força: {', '.join(FORCA_PADRAO)}.
- A manilha é o valor seguinte ao da vira.
- {NOMES_TIMES[0]} são os jogadores 0 e 2, {NOMES_TIMES[1]} são 1 e 3. Você é o jogador {assento}.

Sua decisão:
- Se pediram truco e você está aguardando resposta, responda "aceitar" ou "correr".
- Senão, "jogar" uma carta (informe indice_carta) ou pedir "truco" (se o valor for menor que 12).

Responda em JSON: {{"acao": "...", "indice_carta": 0, "mensagem": "..."}}
"""


def interpretar_resposta(texto):
    try:
        dados = json.loads(texto or '{}')
    except (TypeError, ValueError) as e:
        raise FalhaProvedor(f"Resposta não é JSON: {texto!r}") from e

    if not isinstance(dados, dict):
        raise FalhaProvedor(f"Resposta fora do formato: {dados!r}")

    tipo = str(dados.get('acao', '')).lower()
    if tipo not in TIPOS_ACAO:
        raise FalhaProvedor(f"Ação desconhecida: {tipo!r}")

    return Acao(tipo, dados.get('indice_carta'), dados.get('mensagem'))


class ProvedorRemoto:
    """
    Pergunta a um serviço externo. 'consultar' é uma corrotina que recebe o
    texto da mesa e devolve a resposta em JSON.
    """

    def __init__(self, consultar):
        self.consultar = consultar

    async def __call__(self, estado, assento):
        texto = await self.consultar(descrever_mesa(estado, assento))
        return interpretar_resposta(texto)


# Formato pedido ao modelo, o mesmo que interpretar_resposta entende
ESQUEMA_RESPOSTA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        'acao': types.Schema(type=types.Type.STRING, enum=list(TIPOS_ACAO)),
        'indice_carta': types.Schema(type=types.Type.INTEGER),
        'mensagem': types.Schema(type=types.Type.STRING),
    },
    required=['acao'],
)


class ConsultaGemini:
    """Corrotina 'consultar' do ProvedorRemoto usando o Gemini (google-genai)."""

    def __init__(self, api_key, modelo="gemini-2.5-flash", cliente=None):
        self.api_key = api_key
        self.modelo = modelo
        self._cliente = cliente

    @property
    def cliente(self):
        # Só cria o cliente na primeira consulta
        if self._cliente is None:
            self._cliente = genai.Client(api_key=self.api_key)
        return self._cliente

    async def __call__(self, prompt):
        resposta = await self.cliente.aio.models.generate_content(
            model=self.modelo,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=ESQUEMA_RESPOSTA,
            ),
        )
        return resposta.text
