import os
import random

import socketio
import uvicorn

from truco_bots import BotHeuristico, ConsultaGemini, ProvedorRemoto
from truco_core import Carta, NUM_JOGADORES
from truco_mesa import Mesa
from truco_partida import Jogador, visao

# ==============================================================================
# CONFIGURAÇÕES INICIAIS
# ==============================================================================
PORTA = int(os.environ.get("PORT", 10000))
ATRASO_BOT = float(os.environ.get("TRUCO_ATRASO_BOT", 1.5))
TIMEOUT_BOT = float(os.environ.get("TRUCO_TIMEOUT_BOT", 10))
# Com chave do Gemini os robôs são jogados pelo modelo; sem ela, heurística local
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
MODELO_GEMINI = os.environ.get("TRUCO_MODELO", "gemini-2.5-flash")
PAUSA_ENTRE_MAOS = float(os.environ.get("TRUCO_PAUSA_MAO", 3))

sio = socketio.AsyncServer(async_mode='asgi', cors_allowed_origins='*')
app = socketio.ASGIApp(sio)

# nome_sala -> {'mesa': Mesa, 'sid': sid do humano, 'assento': assento do humano}
jogos = {}
ASSENTO_HUMANO = 0

# ==============================================================================
# 1. UTILITÁRIOS
# ==============================================================================

def encontrar_sala(sid, dados=None):
    if dados and dados.get('nome_sala') in jogos:
        nome = dados['nome_sala']
        if jogos[nome]['sid'] == sid:
            return nome, jogos[nome]
        return None, None
    for nome, sala in jogos.items():
        if sala['sid'] == sid:
            return nome, sala
    return None, None


def criar_provedor(rng):
    if GEMINI_API_KEY:
        print(f"[SISTEMA] Robôs usando o modelo {MODELO_GEMINI}")
        return ProvedorRemoto(ConsultaGemini(GEMINI_API_KEY, MODELO_GEMINI))
    return BotHeuristico(rng)


def montar_jogadores(nome_jogador):
    return [
        Jogador(i, nome_jogador, eh_bot=False) if i == ASSENTO_HUMANO else Jogador(i, f"Robô {i}")
        for i in range(NUM_JOGADORES)
    ]

# ==============================================================================
# 2. SALAS
# ==============================================================================

@sio.event
async def connect(sid, environ):
    print(f"[SISTEMA] Conectou: {sid}")
    await sio.emit('mensagem', 'Conectado! Crie uma sala para jogar.', to=sid)


@sio.event
async def criar_sala_vs_bot(sid, d):
    n = d['nome_sala']
    if n in jogos:
        await sio.emit('erro', 'Sala já existe', to=sid)
        return

    rng = random.Random()
    provedor = criar_provedor(rng)
    provedores = {i: provedor for i in range(NUM_JOGADORES) if i != ASSENTO_HUMANO}

    async def enviar_estado(estado):
        dados = visao(estado, ASSENTO_HUMANO)
        dados['aguardando_decisao'] = mesa.aguardando_decisao
        await sio.emit('estado', dados, to=sid)

    mesa = Mesa(
        jogadores=montar_jogadores(d.get('nome_jogador') or "Você"),
        provedores=provedores,
        rng=rng,
        atraso_bot=ATRASO_BOT,
        timeout_bot=TIMEOUT_BOT,
        pausa_entre_maos=PAUSA_ENTRE_MAOS,
        ao_mudar=enviar_estado,
    )
    jogos[n] = {'mesa': mesa, 'sid': sid, 'assento': ASSENTO_HUMANO}
    await sio.enter_room(sid, n)
    print(f"[SISTEMA] Sala '{n}' criada por {sid}")
    await mesa.iniciar()


async def gerenciar_desistencia(sid):
    nome_sala, sala = encontrar_sala(sid)
    if sala is None:
        return
    sala['mesa'].cancelar()
    del jogos[nome_sala]
    print(f"[SISTEMA] Sala '{nome_sala}' encerrada")


@sio.event
async def disconnect(sid):
    await gerenciar_desistencia(sid)


@sio.event
async def sair_do_jogo(sid):
    await gerenciar_desistencia(sid)

# ==============================================================================
# 3. JOGADAS DO HUMANO
# ==============================================================================

@sio.event
async def jogar_carta(sid, d):
    _, sala = encontrar_sala(sid, d)
    if sala is None:
        return
    try:
        carta = Carta(str(d['carta']['valor']), str(d['carta']['naipe']))
    except (KeyError, TypeError):
        await sio.emit('erro', 'Carta inválida', to=sid)
        return
    await sala['mesa'].jogar(sala['assento'], carta)


@sio.event
async def pedir_truco(sid, d):
    _, sala = encontrar_sala(sid, d)
    if sala is None:
        return
    await sala['mesa'].pedir_truco(sala['assento'])


@sio.event
async def responder_truco(sid, d):
    _, sala = encontrar_sala(sid, d)
    if sala is None:
        return

    resposta = str(d.get('resposta', '')).upper()
    if resposta == 'ACEITAR':
        await sala['mesa'].aceitar(sala['assento'])
    elif resposta == 'CORRER':
        await sala['mesa'].correr(sala['assento'])
    else:
        print(f"[DEBUG] Resposta de truco desconhecida: {resposta!r}")


if __name__ == '__main__':
    uvicorn.run(app, host="0.0.0.0", port=PORTA)
