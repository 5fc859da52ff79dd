import asyncio
import inspect
import random
import traceback

from truco_partida import (
    JOGADORES_PADRAO, acao_padrao, aceitar_truco, aplicar_acao, correr,
    jogar_carta, nova_partida, pedir_truco, proxima_mao, quem_age,
)


class Mesa:
    """
    Conduz uma partida inteira. Assentos com provedor são decididos por ele
    (bot, modelo remoto...); assentos sem provedor esperam comando humano.
    Uma transição por vez: comandos que chegam no meio de outra são recusados.
    """

    def __init__(self, jogadores=None, provedores=None, rng=None, dealer=0,
                 atraso_bot=0.0, timeout_bot=10.0, pausa_entre_maos=0.0,
                 ao_mudar=None):
        self.jogadores = tuple(jogadores or JOGADORES_PADRAO)
        self.provedores = dict(provedores or {})
        self.rng = rng or random.Random()
        self.dealer_inicial = dealer
        self.atraso_bot = atraso_bot
        self.timeout_bot = timeout_bot
        self.pausa_entre_maos = pausa_entre_maos
        self.ao_mudar = ao_mudar

        self.estado = None
        self.aguardando_decisao = None
        self._trava = asyncio.Lock()
        self._tarefa = None
        self._cancelada = False

    # ------------------------------------------------------------------
    # ciclo
    # ------------------------------------------------------------------

    async def iniciar(self, baralho=None):
        self.estado = nova_partida(self.jogadores, self.dealer_inicial, baralho, self.rng)
        print(f"[MESA] {self.estado.mensagem}")
        await self._notificar()
        self.agendar()

    def agendar(self):
        if self._cancelada:
            return
        if self._tarefa is None or self._tarefa.done():
            self._tarefa = asyncio.create_task(self.rodar())
            self._tarefa.add_done_callback(self._tarefa_terminou)

    def _tarefa_terminou(self, tarefa):
        if tarefa.cancelled():
            return
        erro = tarefa.exception()
        if erro is not None:
            print(f"[MESA] ERRO CRÍTICO na mesa: {erro!r}")
            traceback.print_exception(type(erro), erro, erro.__traceback__)

    async def esperar(self):
        if self._tarefa is not None:
            await self._tarefa

    def cancelar(self):
        self._cancelada = True
        if self._tarefa is not None and not self._tarefa.done():
            self._tarefa.cancel()

    async def rodar(self):
        """Faz os bots jogarem até chegar a vez de um humano ou acabar o jogo."""
        while not self._cancelada:
            estado = self.estado
            if estado.fim_de_jogo:
                print(f"[MESA] Fim de jogo. Placar {estado.placar[0]} x {estado.placar[1]}")
                return

            if estado.fim_de_mao:
                if self.pausa_entre_maos:
                    await asyncio.sleep(self.pausa_entre_maos)
                await self._transicao(lambda e: proxima_mao(e, rng=self.rng), estado.jogadas)
                continue

            assento = quem_age(estado)
            provedor = self.provedores.get(assento)
            if provedor is None:
                return

            acao = await self._decidir(provedor, estado, assento)

            # Decisão atrasada: o jogo andou (ou acabou) enquanto o bot pensava
            if self._cancelada or self.estado.jogadas != estado.jogadas or self.estado.fim_de_jogo:
                print(f"[BOT] Decisão do assento {assento} descartada")
                continue

            aceita = await self._transicao(lambda e: aplicar_acao(e, assento, acao), estado.jogadas)
            if not aceita:
                print(f"[BOT] Ação {acao} recusada, usando a padrão")
                padrao = acao_padrao(estado, assento)
                aceita = await self._transicao(lambda e: aplicar_acao(e, assento, padrao), estado.jogadas)
                if not aceita:
                    print(f"[MESA] Assento {assento} travado: {self.estado.mensagem}")
                    return

    async def _decidir(self, provedor, estado, assento):
        self.aguardando_decisao = assento
        await self._notificar()
        try:
            if self.atraso_bot:
                await asyncio.sleep(self.atraso_bot)
            try:
                resposta = provedor(estado, assento)
                if inspect.isawaitable(resposta):
                    resposta = await asyncio.wait_for(resposta, self.timeout_bot)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                print(f"[BOT] ERRO no provedor do assento {assento}: {e!r}")
                traceback.print_exc()
                resposta = acao_padrao(estado, assento)
        finally:
            self.aguardando_decisao = None
        return resposta

    async def _transicao(self, funcao, versao=None):
        async with self._trava:
            antes = self.estado
            if versao is not None and antes.jogadas != versao:
                return False
            self.estado = funcao(antes)
            aceita = self.estado.jogadas != antes.jogadas
            print(f"[MESA] {self.estado.mensagem}")
            await self._notificar()
        return aceita

    async def _notificar(self):
        if self.ao_mudar is None:
            return
        try:
            await self.ao_mudar(self.estado)
        except Exception as e:
            print(f"[MESA] ERRO ao notificar: {e!r}")
            traceback.print_exc()

    # ------------------------------------------------------------------
    # comandos do humano
    # ------------------------------------------------------------------

    async def _comando(self, assento, funcao):
        if self._trava.locked() or self.estado is None:
            return False
        if assento in self.provedores:
            return False
        aceita = await self._transicao(funcao)
        if aceita:
            self.agendar()
        return aceita

    async def jogar(self, assento, carta):
        return await self._comando(assento, lambda e: jogar_carta(e, assento, carta))

    async def pedir_truco(self, assento):
        return await self._comando(assento, lambda e: pedir_truco(e, assento))

    async def aceitar(self, assento):
        return await self._comando(assento, lambda e: aceitar_truco(e, assento))

    async def correr(self, assento):
        return await self._comando(assento, lambda e: correr(e, assento))
